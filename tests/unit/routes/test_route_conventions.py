"""Tests for framework route path mapping."""

import pytest

from flowsight.routes.route_conventions import (
    app_router_path,
    generic_path,
    map_file_to_route,
    pages_path,
    route_module_path,
)
from flowsight.routes.route_types import Framework, RouteConvention


class TestAppRouterPath:
    @pytest.mark.parametrize(
        "relative_path,expected",
        [
            ("app/page.tsx", "/"),
            ("app/checkout/page.tsx", "/checkout"),
            ("src/app/settings/profile/page.tsx", "/settings/profile"),
            ("app/(shop)/cart/page.tsx", "/cart"),
            ("app/@modal/login/page.tsx", "/login"),
            ("app/products/[id]/page.tsx", "/products/[id]"),
        ],
    )
    def test_maps_folders_to_path(self, relative_path: str, expected: str) -> None:
        assert app_router_path(relative_path) == expected

    def test_private_folder_is_not_routable(self) -> None:
        assert app_router_path("app/_components/page.tsx") is None


class TestPagesPath:
    @pytest.mark.parametrize(
        "relative_path,expected",
        [
            ("pages/index.tsx", "/"),
            ("pages/about.tsx", "/about"),
            ("pages/blog/index.jsx", "/blog"),
            ("src/pages/account/orders.ts", "/account/orders"),
        ],
    )
    def test_maps_file_to_path(self, relative_path: str, expected: str) -> None:
        assert pages_path(relative_path) == expected

    @pytest.mark.parametrize("special", ["_app", "_document", "_error"])
    def test_special_files_are_not_routes(self, special: str) -> None:
        assert pages_path(f"pages/{special}.tsx") is None


class TestRouteModulePath:
    @pytest.mark.parametrize(
        "relative_path,expected",
        [
            ("app/routes/_index.tsx", "/"),
            ("app/routes/about.tsx", "/about"),
            ("app/routes/users.$id.tsx", "/users/:id"),
            ("app/routes/files.$.tsx", "/files/*"),
            ("app/routes/_auth.login.tsx", "/login"),
            ("app/routes/dashboard_.settings.tsx", "/dashboard/settings"),
            ("app/routes/orders/route.tsx", "/orders"),
        ],
    )
    def test_maps_module_name_to_path(self, relative_path: str, expected: str) -> None:
        assert route_module_path(relative_path) == expected


class TestGenericPath:
    @pytest.mark.parametrize(
        "relative_path,expected",
        [
            ("src/pages/settings.tsx", "/settings"),
            ("src/routes/index.tsx", "/"),
            ("routes/admin/users.jsx", "/admin/users"),
            ("pages/home.js", "/home"),
        ],
    )
    def test_maps_file_to_path(self, relative_path: str, expected: str) -> None:
        assert generic_path(relative_path) == expected


class TestMapFileToRoute:
    def test_dispatches_by_convention(self) -> None:
        assert map_file_to_route("app/cart/page.tsx", RouteConvention.APP_ROUTER) == "/cart"
        assert map_file_to_route("app/routes/cart.tsx", RouteConvention.ROUTE_MODULE) == "/cart"


class TestFrameworkParse:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("next", Framework.NEXTJS),
            ("Next.js", Framework.NEXTJS),
            ("nextjs", Framework.NEXTJS),
            ("remix", Framework.REMIX),
            ("React Router", Framework.REACT),
            (Framework.REACT, Framework.REACT),
        ],
    )
    def test_aliases(self, value, expected: Framework) -> None:
        assert Framework.parse(value) == expected

    def test_unknown_framework_falls_back_to_generic(self) -> None:
        assert Framework.parse("svelte") == Framework.GENERIC
