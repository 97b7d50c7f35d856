"""Tests for navigation target extraction."""

import pytest

from flowsight.routes.navigation_parser import extract_navigation_targets, normalize_target


class TestNormalizeTarget:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("/checkout", "/checkout"),
            ("checkout", "/checkout"),
            ("/cart/", "/cart"),
            ("/", "/"),
            ("/search?q=shoes", "/search"),
            ("/docs#install", "/docs"),
            ("/users/${user.id}/edit", "/users/:param/edit"),
        ],
    )
    def test_normalizes_internal_targets(self, raw: str, expected: str) -> None:
        assert normalize_target(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["https://example.com", "http://example.com/a", "mailto:a@b.c", "tel:123", "//cdn.example.com", "#top", ""],
    )
    def test_ignores_external_and_hash_targets(self, raw: str) -> None:
        assert normalize_target(raw) is None


class TestExtractNavigationTargets:
    def test_extracts_links_and_navigation_calls(self) -> None:
        content = """
        import Link from "next/link";
        export default function Cart() {
          const router = useRouter();
          return (
            <div>
              <Link href="/checkout">Checkout</Link>
              <a href='/help'>Help</a>
              <button onClick={() => router.push("/orders")}>Orders</button>
              <button onClick={() => navigate(`/profile`)}>Profile</button>
            </div>
          );
        }
        export async function loader() { return redirect("/login"); }
        """

        targets = extract_navigation_targets(content)

        for expected in ["/checkout", "/help", "/orders", "/profile", "/login"]:
            assert expected in targets

    def test_skips_external_links(self) -> None:
        content = '<a href="https://example.com">x</a><Link href={"/about"}>About</Link>'

        assert extract_navigation_targets(content) == ["/about"]
