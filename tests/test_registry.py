import os
import tempfile
import unittest
from pathlib import Path

from schema_llm.registry import create_registry


class SchemaRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.schema_dir = Path(self.tmp.name) / "schemas"
        self.schema_dir.mkdir()
        (self.schema_dir / "claude.json").write_text("{}", encoding="utf-8")
        (self.schema_dir / "openai.json").write_text("{}", encoding="utf-8")
        (self.schema_dir / "README.md").write_text("docs", encoding="utf-8")
        (self.schema_dir / "nested.json").mkdir()

        self.custom = Path(self.tmp.name) / "custom-schema.json"
        self.custom.write_text("{}", encoding="utf-8")

    def test_resolves_directory_convention(self) -> None:
        registry = create_registry(self.schema_dir)
        path = registry.resolve_path("claude")
        self.assertTrue(path.is_absolute())
        self.assertEqual(path, (self.schema_dir / "claude.json").absolute())

    def test_override_wins(self) -> None:
        registry = create_registry(self.schema_dir, {"claude": str(self.custom)})
        self.assertEqual(registry.resolve_path("claude"), self.custom.absolute())

    def test_relative_paths_become_absolute(self) -> None:
        registry = create_registry("schemas")
        self.assertEqual(registry.resolve_path("openai"), Path(os.getcwd(), "schemas", "openai.json"))

    def test_blank_provider_is_usage_error(self) -> None:
        registry = create_registry(self.schema_dir)
        with self.assertRaises(ValueError):
            registry.resolve_path("  ")

    def test_list_available(self) -> None:
        missing = Path(self.tmp.name) / "missing.json"
        registry = create_registry(self.schema_dir, {"custom": str(self.custom), "ghost": str(missing)})
        self.assertEqual(registry.list_available(), ["claude", "custom", "openai"])

    def test_missing_directory_lists_overrides_only(self) -> None:
        registry = create_registry(Path(self.tmp.name) / "nowhere", {"custom": str(self.custom)})
        self.assertEqual(registry.list_available(), ["custom"])

    def test_is_available(self) -> None:
        registry = create_registry(self.schema_dir)
        self.assertTrue(registry.is_available("claude"))
        self.assertFalse(registry.is_available("mistral"))
        self.assertFalse(registry.is_available(""))
        self.assertFalse(registry.is_available(None))

    def test_factory_rejects_blank_values(self) -> None:
        with self.assertRaises(ValueError):
            create_registry(" ")
        with self.assertRaises(ValueError):
            create_registry(self.schema_dir, {"": "x.json"})
        with self.assertRaises(ValueError):
            create_registry(self.schema_dir, {"claude": ""})

    def test_registry_is_immutable(self) -> None:
        overrides = {"custom": str(self.custom)}
        registry = create_registry(self.schema_dir, overrides)
        overrides["other"] = "other.json"
        self.assertNotIn("other", registry.provider_paths)
        with self.assertRaises(TypeError):
            registry.provider_paths["other"] = Path("other.json")  # type: ignore[index]
        with self.assertRaises(AttributeError):
            registry.schema_directory = Path("elsewhere")  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
