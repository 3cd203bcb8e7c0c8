"""Tests for top-level package exports."""

from __future__ import annotations

import unittest

import streamawait


class PackageExportTests(unittest.TestCase):
    """Ensure exported symbols resolve."""

    def test_all_exports_resolve(self) -> None:
        for name in streamawait.__all__:
            with self.subTest(name=name):
                self.assertIsNotNone(getattr(streamawait, name))

    def test_public_operations_are_callable(self) -> None:
        for name in (
            "wait",
            "extract",
            "bifurcate",
            "pipe_with_events",
            "on_event",
            "stream_from_string",
        ):
            self.assertTrue(callable(getattr(streamawait, name)))

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(streamawait, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
