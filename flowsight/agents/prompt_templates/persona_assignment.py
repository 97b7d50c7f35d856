"""
Persona assignment prompt template.

This module provides the prompt template for grouping identified flows under the
personas that perform them.
"""

from .base import PromptTemplate

PERSONA_ASSIGNMENT_TEMPLATE = PromptTemplate(
    name="persona_assignment",
    version="2",
    description="Synthesizes user personas and assigns each identified flow to the personas that perform it",
    variables=["framework", "flows"],
    system_prompt="""You are a product researcher building user personas for a web application. You are given the user flows that exist in the application.

## Your Task
Define the distinct kinds of users of this application and decide which flows each of them performs.

## Guidelines
1. Create between 2 and 6 personas, each with a short name such as "Shopper", "Store Admin" or "Guest Visitor"
2. Give each persona a one-sentence description and a few concrete behaviors
3. flow_names must contain flow names exactly as given in the input
4. Every flow should belong to at least one persona; a flow may belong to several

## Example Response
{
  "personas": [
    {
      "name": "Shopper",
      "description": "A signed-in customer who buys products.",
      "behaviors": ["Browses the catalog", "Pays with a saved card"],
      "flow_names": ["Checkout", "Order History"]
    }
  ]
}""",
    input_prompt="""Framework: {framework}

Flows:
{flows}""",
)
