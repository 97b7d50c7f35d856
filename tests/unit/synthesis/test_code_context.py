"""Tests for bounded code context construction."""

from flowsight.routes.route_types import Framework
from flowsight.synthesis.code_context import TRUNCATION_MARKER, CodeContextBuilder, truncate


class TestTruncate:
    def test_short_text_is_unchanged(self) -> None:
        assert truncate("abc", 5) == "abc"

    def test_long_text_gets_marker(self) -> None:
        assert truncate("abcdef", 3) == "abc" + TRUNCATION_MARKER


class TestCodeContextBuilder:
    def test_uses_flow_files_with_headers(self, write_tree) -> None:
        root = write_tree({"app/cart/page.tsx": "CART", "app/checkout/page.tsx": "CHECKOUT", "app/page.tsx": "HOME"})

        context = CodeContextBuilder().build(root, Framework.NEXTJS, ["app/cart/page.tsx", "app/checkout/page.tsx"])

        assert context == "// File: app/cart/page.tsx\nCART\n\n// File: app/checkout/page.tsx\nCHECKOUT"

    def test_falls_back_to_framework_sample_when_flow_files_unreadable(self, write_tree) -> None:
        root = write_tree({"app/page.tsx": "HOME", "node_modules/app/page.tsx": "VENDOR"})

        context = CodeContextBuilder().build(root, Framework.NEXTJS, ["app/missing/page.tsx"])

        assert "// File: app/page.tsx\nHOME" in context
        assert "VENDOR" not in context

    def test_sample_is_capped(self, write_tree) -> None:
        root = write_tree({f"src/components/C{i}.tsx": "x" for i in range(5)})

        files = CodeContextBuilder(max_files=3).sample_files(root, Framework.GENERIC)

        assert files == ["src/components/C0.tsx", "src/components/C1.tsx", "src/components/C2.tsx"]

    def test_context_is_truncated(self, write_tree) -> None:
        root = write_tree({"src/App.tsx": "y" * 500})

        context = CodeContextBuilder(max_chars=100).build(root, Framework.REACT)

        assert len(context) == 100 + len(TRUNCATION_MARKER)
        assert context.endswith(TRUNCATION_MARKER)

    def test_empty_project_yields_empty_context(self, tmp_path) -> None:
        assert CodeContextBuilder().build(tmp_path, Framework.REMIX) == ""
