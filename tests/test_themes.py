from __future__ import annotations

import dataclasses
import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(TESTS_DIR.parent / "src"))

from wardleymap.themes import DEFAULT_THEME, resolve_theme, theme_names


class ThemeRegistryTests(unittest.TestCase):
    def test_closed_set(self) -> None:
        self.assertEqual(
            theme_names(), ["wardley", "plain", "colour", "dark", "handwritten", "octo"]
        )
        self.assertEqual(DEFAULT_THEME, "wardley")

    def test_unknown_and_missing_fall_back_to_default(self) -> None:
        self.assertEqual(resolve_theme("neon"), resolve_theme(DEFAULT_THEME))
        self.assertEqual(resolve_theme(None).name, DEFAULT_THEME)
        self.assertEqual(resolve_theme("").name, DEFAULT_THEME)

    def test_unknown_theme_is_logged(self) -> None:
        with self.assertLogs("wardleymap", "DEBUG") as logs:
            resolve_theme("neon")
        self.assertEqual(logs.output, ['DEBUG:wardleymap.themes:unknown theme "neon", using "wardley"'])

    def test_every_attribute_is_populated(self) -> None:
        for name in theme_names():
            styles = resolve_theme(name)
            for field in dataclasses.fields(styles):
                value = getattr(styles, field.name)
                self.assertIsNotNone(value, f"{name}.{field.name}")
                if dataclasses.is_dataclass(value):
                    for sub in dataclasses.fields(value):
                        self.assertIsNotNone(getattr(value, sub.name), f"{name}.{field.name}.{sub.name}")

    def test_omitted_attributes_use_category_defaults(self) -> None:
        plain = resolve_theme("plain")
        self.assertEqual(plain.component.stroke_width, 1)
        self.assertEqual(plain.note.font_size, "12px")
        self.assertEqual(plain.anchor.fill, "#F59E0B")

        dark = resolve_theme("dark")
        self.assertEqual(dark.background, "#353347")
        self.assertEqual(dark.component.text_color, "white")
        self.assertEqual(dark.component.radius, 5)

    def test_gradient_backgrounds(self) -> None:
        self.assertEqual(resolve_theme("wardley").background, "url(#wardleyGradient)")
        self.assertEqual(resolve_theme("octo").background, "url(#octoGradient)")
        self.assertEqual(resolve_theme("handwritten").background, "white")


if __name__ == "__main__":
    unittest.main()
