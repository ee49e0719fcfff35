from __future__ import annotations

import json

from bit2.project import project_settings
from bit2.project_spec import GitSpec


def test_settings_written_by_new(project_dir):
    assert project_settings(project_dir) == ("cloudflare", GitSpec(host="github", private=True))


def test_settings_missing_or_malformed(tmp_path):
    (tmp_path / "package.json").write_text(json.dumps({"name": "x"}), encoding="utf-8")
    assert project_settings(tmp_path) == (None, GitSpec())

    (tmp_path / "package.json").write_text(
        json.dumps({"name": "x", "bit2": {"provider": "Vercel", "git": {"host": "bitbucket"}}}),
        encoding="utf-8",
    )
    assert project_settings(tmp_path) == ("vercel", GitSpec(host="github", private=True))
