"""Root test configuration: content-directory fixtures shared by unit and integration tests"""

from pathlib import Path

import pytest
import yaml


@pytest.fixture(name="posts_dir")
def posts_dir_fixture(tmp_path) -> Path:
    d = tmp_path / "posts"
    d.mkdir()
    return d


@pytest.fixture(name="write_post")
def write_post_fixture(posts_dir):
    """Return a helper writing posts_dir/<name> with a YAML header (when metadata is given) and body."""

    def _write(name: str, body: str = "", **metadata) -> Path:
        text = body
        if metadata:
            header = yaml.safe_dump(metadata, sort_keys=False)
            text = f"---\n{header}---\n{body}"
        path = posts_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
