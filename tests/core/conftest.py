from dataclasses import dataclass

import pytest
from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")

APP_SOURCE = "one\ntwo\nthree\nfour\nfive\n"
APP_SOURCE_CHANGED = "one\nTWO\nthree\nFOUR\nfive\n"


@dataclass
class PullRequestRepo:
    repo: Repo
    path: str
    base: str
    main_tip: str
    feature_tip: str
    merge: str


def _commit(repo: Repo, files: dict, message: str) -> str:
    for name, content in files.items():
        with open(f"{repo.working_tree_dir}/{name}", "w") as f:
            f.write(content)
    repo.index.add(list(files))
    return repo.index.commit(message, author=AUTHOR, committer=AUTHOR).hexsha


@pytest.fixture
def isolated_git(monkeypatch, tmp_path):
    """Stops git from discovering a repository above the test's temporary directory."""
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    return tmp_path


@pytest.fixture
def pull_request_repo(isolated_git):
    """
    Create a repository shaped like a pull request checkout.

    History:
    - base: initial commit on main with app.py
    - main_tip: README.md added on main
    - feature_tip: lines two and four of app.py changed on feature
    - merge: feature merged into main with --no-ff, parents (main_tip, feature_tip)

    HEAD is left on the merge commit and refs/remotes/pull/7/merge points to it,
    the way actions/checkout leaves a pull_request run.

    Returns:
        PullRequestRepo: The repository and the SHA of each commit
    """
    path = isolated_git / "repo"
    repo = Repo.init(path, initial_branch="main")
    with repo.config_writer() as config:
        config.set_value("user", "name", AUTHOR.name)
        config.set_value("user", "email", AUTHOR.email)
        config.set_value("commit", "gpgsign", "false")

    base = _commit(repo, {"app.py": APP_SOURCE}, "Initial commit")

    repo.git.checkout("-b", "feature")
    feature_tip = _commit(repo, {"app.py": APP_SOURCE_CHANGED}, "Change app")

    repo.git.checkout("main")
    main_tip = _commit(repo, {"README.md": "# app\n"}, "Add readme")

    repo.git.merge("--no-ff", "feature", "-m", "Merge feature")
    merge = repo.head.commit.hexsha
    repo.git.update_ref("refs/remotes/pull/7/merge", merge)

    yield PullRequestRepo(
        repo=repo,
        path=str(path),
        base=base,
        main_tip=main_tip,
        feature_tip=feature_tip,
        merge=merge,
    )
    repo.close()
