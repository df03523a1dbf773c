from __future__ import annotations

import io
import json
import unittest
from contextlib import redirect_stdout

from matchoracle.cli import main


class CliTests(unittest.TestCase):
    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(list(argv))
        return code, out.getvalue()

    def test_offline_analyze_prints_estimate(self) -> None:
        code, output = self._run(
            "--offline", "--sport", "hockey", "analyze", "--home", "Edmonton Oilers", "--away", "Florida Panthers",
            "--score", "1-0", "--time", "P2",
        )

        self.assertEqual(0, code)
        payload = json.loads(output)
        self.assertTrue(payload["isFallback"])
        self.assertEqual("1-0", payload["liveState"]["currentScore"])

    def test_offline_fixtures_prints_backup_list(self) -> None:
        code, output = self._run("--offline", "fixtures")

        self.assertEqual(0, code)
        self.assertTrue(all(item["sport"] == "SOCCER" for item in json.loads(output)))

    def test_invalid_teams_exit_non_zero(self) -> None:
        code, output = self._run("--offline", "analyze", "--home", " ", "--away", "Chelsea")

        self.assertEqual(1, code)
        self.assertEqual("", output)


if __name__ == "__main__":
    unittest.main()
