from __future__ import annotations

import pytest

from bit2.validation import validate_database_url, validate_github_repo, validate_project_name


@pytest.mark.parametrize("name", ["my-app", "cool_project", "app.v2", "a", "123abc", "x" * 100])
def test_valid_project_names(name):
    assert validate_project_name(name).valid


@pytest.mark.parametrize(
    ("name", "fragment"),
    [
        ("", "required"),
        (None, "required"),
        ("x" * 101, "between 1 and 100"),
        ("MyApp", "lowercase"),
        ("my app", "lowercase"),
        ("_private", "lowercase"),
        (".hidden", "lowercase"),
        ("trailing-", "start or end"),
        ("trailing.", "start or end"),
        ("node_modules", "reserved"),
        ("tests", "reserved"),
    ],
)
def test_invalid_project_names(name, fragment):
    result = validate_project_name(name)
    assert not result.valid
    assert fragment in result.error


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/my-app",
        "https://github.com/acme/my-app.git",
        "git@github.com:acme/my-app.git",
        "git@github.com:acme/my-app",
    ],
)
def test_github_repo_urls(url):
    result = validate_github_repo(url)
    assert result.valid
    assert (result.owner, result.repo) == ("acme", "my-app")


def test_github_repo_url_with_dots_in_name():
    result = validate_github_repo("https://github.com/acme/app.v2.git")
    assert result.repo == "app.v2"


def test_invalid_github_repo_url():
    result = validate_github_repo("https://gitlab.com/acme/my-app")
    assert not result.valid
    assert result.error == "Invalid GitHub repository URL"


def test_database_urls():
    assert validate_database_url("file:./dev.db").kind == "local"
    assert validate_database_url("libsql://my-app-acme.turso.io").kind == "turso"
    assert validate_database_url("https://my-app-acme.turso.io").kind == "turso"
    assert not validate_database_url("postgres://localhost/db").valid
