"""Tests for ValuesBuilder."""

from winzig.mapper import ValuesBuilder


class TestValuesBuilder:
    """Tests for building column value maps."""

    def test_put_chains(self):
        """put() calls should chain and collect values."""
        values = ValuesBuilder().put("title", "a").put("score", 1.5).build()

        assert values == {"title": "a", "score": 1.5}

    def test_bool_stored_as_integer(self):
        """Booleans should be converted the way boolean fields store them."""
        assert ValuesBuilder().put("pinned", True).build() == {"pinned": 1}

    def test_binary_values_become_bytes(self):
        """bytearray and memoryview should be converted to bytes."""
        values = ValuesBuilder().put("a", bytearray(b"x")).put("b", memoryview(b"y")).build()

        assert values == {"a": b"x", "b": b"y"}

    def test_put_null_and_put_all(self):
        """put_null and put_all should add entries."""
        values = ValuesBuilder({"a": 1}).put_all({"b": False}).put_null("c").build()

        assert values == {"a": 1, "b": 0, "c": None}

    def test_build_returns_copy(self):
        """The builder should stay usable as a template."""
        builder = ValuesBuilder().put("a", 1)
        first = builder.build()
        first["a"] = 2

        assert builder.build() == {"a": 1}
