"""Regression tests for importing the data layer without the HTTP stack."""

from __future__ import annotations

import importlib
import sys
import types
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class StorageImportTests(unittest.TestCase):
    def setUp(self) -> None:
        self._saved_modules = {
            name: module
            for name, module in sys.modules.items()
            if name == "quotebook" or name.startswith("quotebook.")
        }

    def tearDown(self) -> None:
        self._clear_quotebook_modules()
        sys.modules.update(self._saved_modules)

    @staticmethod
    def _clear_quotebook_modules() -> None:
        for name in [m for m in list(sys.modules.keys()) if m == "quotebook" or m.startswith("quotebook.")]:
            sys.modules.pop(name, None)

    def test_import_storage_without_fastapi(self) -> None:
        """Importing quotebook.storage should not pull in FastAPI."""

        self._clear_quotebook_modules()

        fastapi_module: types.ModuleType | None = sys.modules.pop("fastapi", None)
        sys.modules["fastapi"] = None
        try:
            storage_module = importlib.import_module("quotebook.storage")
            self.assertTrue(hasattr(storage_module, "Database"))

            package = sys.modules.get("quotebook")
            self.assertIsNotNone(package)
            self.assertTrue(hasattr(package, "Database"))
        finally:
            sys.modules.pop("fastapi", None)
            if fastapi_module is not None:
                sys.modules["fastapi"] = fastapi_module


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
