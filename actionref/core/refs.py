import re
from dataclasses import dataclass
from typing import Union

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"
PULL_PREFIX = "refs/pull/"
REMOTE_PULL_PREFIX = "refs/remotes/pull/"

PULL_REF_PATTERN = re.compile(r"^refs/pull/(\d+)/(merge|head)$")


@dataclass(frozen=True)
class BranchRef:
    name: str

    def __str__(self) -> str:
        return f"{HEADS_PREFIX}{self.name}"


@dataclass(frozen=True)
class TagRef:
    name: str

    def __str__(self) -> str:
        return f"{TAGS_PREFIX}{self.name}"


@dataclass(frozen=True)
class PullMergeRef:
    """The synthetic commit merging a pull request into its base branch."""
    number: str

    def __str__(self) -> str:
        return f"{PULL_PREFIX}{self.number}/merge"

    def remote_tracking(self) -> str:
        """The same ref in the namespace actions/checkout@v1 fetches pull refs into."""
        return f"{REMOTE_PULL_PREFIX}{self.number}/merge"

    def to_head(self) -> "PullHeadRef":
        return PullHeadRef(self.number)


@dataclass(frozen=True)
class PullHeadRef:
    """The tip of a pull request's source branch."""
    number: str

    def __str__(self) -> str:
        return f"{PULL_PREFIX}{self.number}/head"


@dataclass(frozen=True)
class OpaqueRef:
    value: str

    def __str__(self) -> str:
        return self.value


Ref = Union[BranchRef, TagRef, PullMergeRef, PullHeadRef, OpaqueRef]


def parse_ref(value: str) -> Ref:
    """Classify a ref string. Anything unrecognized is kept verbatim as an OpaqueRef."""
    match = PULL_REF_PATTERN.match(value)
    if match:
        number = match.group(1)
        return PullMergeRef(number) if match.group(2) == "merge" else PullHeadRef(number)
    if value.startswith(HEADS_PREFIX) and len(value) > len(HEADS_PREFIX):
        return BranchRef(value[len(HEADS_PREFIX):])
    if value.startswith(TAGS_PREFIX) and len(value) > len(TAGS_PREFIX):
        return TagRef(value[len(TAGS_PREFIX):])
    return OpaqueRef(value)


def remove_refs_heads_prefix(ref: str) -> str:
    if ref.startswith(HEADS_PREFIX):
        return ref[len(HEADS_PREFIX):]
    return ref
