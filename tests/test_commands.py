from __future__ import annotations

import unittest

from src.commands.oc import build_oc_description
from src.core.constants import DISCORD_EMBED_DESCRIPTION_LIMIT, OC_EMBED_FALLBACK_LINES


class OcDescriptionTests(unittest.TestCase):
    def test_short_list_is_joined(self):
        self.assertEqual(build_oc_description(["a", "b"]), "a\nb")

    def test_long_list_falls_back_to_first_lines(self):
        lines = [f"• line {i:03d} " + "x" * 50 for i in range(120)]
        description = build_oc_description(lines)

        self.assertLessEqual(len(description), DISCORD_EMBED_DESCRIPTION_LIMIT)
        self.assertTrue(description.startswith(lines[0]))
        self.assertIn(lines[OC_EMBED_FALLBACK_LINES - 1], description)
        self.assertNotIn(lines[OC_EMBED_FALLBACK_LINES], description)
        self.assertTrue(description.endswith(f"*... and {120 - OC_EMBED_FALLBACK_LINES} more*"))

    def test_very_long_lines_still_fit(self):
        lines = ["y" * 500 for _ in range(60)]
        description = build_oc_description(lines)
        self.assertLessEqual(len(description), DISCORD_EMBED_DESCRIPTION_LIMIT)
        kept = description.count("y" * 500)
        self.assertTrue(description.endswith(f"*... and {60 - kept} more*"))


if __name__ == "__main__":
    unittest.main()
