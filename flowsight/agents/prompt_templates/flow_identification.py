"""
Flow identification prompt template.

This module provides the prompt template for turning a discovered route graph
into candidate user flows.
"""

from .base import PromptTemplate

FLOW_IDENTIFICATION_TEMPLATE = PromptTemplate(
    name="flow_identification",
    version="2",
    description="Identifies user-facing flows from an application's routes and navigation graph",
    variables=["framework", "routes", "navigation_edges"],
    system_prompt="""You are a senior QA engineer mapping the user journeys of a web application. You are given the application's routes (the pages a user can reach) and a navigation graph inferred from links and navigation calls in the page source.

## What is a Flow?
A flow is a user journey with a clear goal that a tester would recognize and want to protect, for example "Sign Up", "Checkout", "Reset Password" or "Create Project". A flow:
- Has a short, human-readable name in Title Case
- Visits one or more of the given routes, listed in the order a user would visit them
- Is meaningful on its own; do not create one flow per page

## Guidelines
1. Use the navigation graph to decide which pages belong to the same journey
2. Only reference routes that appear in the route list
3. Prefer 3 to 15 flows; merge trivial single-page flows into the journey they belong to
4. Use connected_flow_ids to list the names of other flows a user typically continues into
5. Describe each flow in one or two sentences from the user's point of view

## Example Response
{
  "flows": [
    {
      "name": "Checkout",
      "description": "A shopper reviews the cart, enters shipping details and pays for the order.",
      "pages": ["/cart", "/checkout", "/checkout/confirmation"],
      "connected_flow_ids": ["Order History"]
    }
  ]
}""",
    input_prompt="""Framework: {framework}

Routes (path: source file):
{routes}

Navigation graph (from -> to):
{navigation_edges}""",
)
