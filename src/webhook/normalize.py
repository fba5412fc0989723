"""Branch and commit derivation, and the Forgejo -> Buildkite field mapping."""

from __future__ import annotations

from src.models import BuildAuthor, BuildRequest, ForgeWebhook

BRANCH_REF_PREFIX = "refs/heads/"
SHORT_COMMIT_LENGTH = 7


def branch_from_ref(ref: str) -> str:
    """``refs/heads/main`` -> ``main``; other refs (tags, notes) pass through."""
    return ref.removeprefix(BRANCH_REF_PREFIX)


def short_commit(commit_id: str) -> str:
    return commit_id[:SHORT_COMMIT_LENGTH]


def build_request(webhook: ForgeWebhook, branch: str) -> BuildRequest:
    """Translate a push event into a Buildkite create-build request.

    The ``FORGEJO_*`` env entries give the build access to forge context that
    Buildkite's own payload has no slot for.
    """
    commit = webhook.head_commit
    author = None
    if commit.author.name or commit.author.email:
        author = BuildAuthor(name=commit.author.name, email=commit.author.email)

    return BuildRequest(
        commit=commit.id,
        branch=branch,
        message=commit.message,
        author=author,
        env={
            "FORGEJO_PUSHER": webhook.pusher.username,
            "FORGEJO_REPO": webhook.repository.full_name,
            "FORGEJO_REPO_NAME": webhook.repository.name,
        },
    )
