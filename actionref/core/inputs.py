import json
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Literal, MutableMapping, Optional, Tuple

from actionref.core import log
from actionref.core.exceptions import ConfigurationError

INPUT_PREFIX = "INPUT_"

UploadKind = Literal["always", "failure-only", "never"]


def input_env_name(name: str) -> str:
    """The variable the runner exposes a step input under, e.g. checkout_path -> INPUT_CHECKOUT_PATH."""
    return f"{INPUT_PREFIX}{name.replace(' ', '_').upper()}"


def get_optional_input(name: str, environ: Optional[MutableMapping[str, str]] = None) -> Optional[str]:
    environ = os.environ if environ is None else environ
    value = environ.get(input_env_name(name), "").strip()
    return value if value else None


def get_required_input(name: str, environ: Optional[MutableMapping[str, str]] = None) -> str:
    value = get_optional_input(name, environ)
    if not value:
        raise ConfigurationError(f"Input required and not supplied: {name}")
    return value


def get_upload_value(value: Optional[str]) -> UploadKind:
    """Parses the `upload` input, mapping the deprecated boolean spellings."""
    if value is None or value in ("true", "always"):
        return "always"
    if value in ("false", "failure-only"):
        return "failure-only"
    if value == "never":
        return "never"
    log.warning(f"Unrecognized 'upload' input: {value}. Defaulting to 'always'.")
    return "always"


@dataclass
class ActionInputs:
    """Step inputs that influence ref resolution"""
    ref: Optional[str] = None
    sha: Optional[str] = None
    checkout_path: Optional[str] = None
    source_root: Optional[str] = None
    upload: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[MutableMapping[str, str]] = None) -> 'ActionInputs':
        return cls(
            ref=get_optional_input("ref", environ),
            sha=get_optional_input("sha", environ),
            checkout_path=get_optional_input("checkout_path", environ),
            source_root=get_optional_input("source-root", environ),
            upload=get_optional_input("upload", environ),
        )

    @property
    def upload_kind(self) -> UploadKind:
        return get_upload_value(self.upload)


@dataclass
class InputSnapshot:
    """
    The step inputs captured at one point of a job.

    A job's post step does not see the inputs of its main step. Capture them
    in the main step, store ``dumps()`` in the runner's state, then ``loads()``
    and ``apply()`` them in the post step. ``restore()`` undoes an ``apply()``.
    """
    values: List[Tuple[str, str]] = field(default_factory=list)
    _previous: Dict[str, Optional[str]] = field(default_factory=dict, init=False, repr=False, compare=False)

    @classmethod
    def capture(cls, environ: Optional[MutableMapping[str, str]] = None) -> 'InputSnapshot':
        environ = os.environ if environ is None else environ
        return cls(values=[(name, value) for name, value in environ.items() if name.startswith(INPUT_PREFIX)])

    def dumps(self) -> str:
        return json.dumps([list(item) for item in self.values])

    @classmethod
    def loads(cls, data: str) -> 'InputSnapshot':
        if not data:
            return cls()
        return cls(values=[(name, value) for name, value in json.loads(data)])

    def apply(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        environ = os.environ if environ is None else environ
        # A repeated apply must not mistake its own values for the originals
        for name, value in self.values:
            if name not in self._previous:
                self._previous[name] = environ.get(name)
            environ[name] = value
        log.debug(f"Applied {len(self.values)} persisted inputs")

    def restore(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        environ = os.environ if environ is None else environ
        for name, value in self._previous.items():
            if value is None:
                environ.pop(name, None)
            else:
                environ[name] = value
        self._previous = {}

    @contextmanager
    def applied(self, environ: Optional[MutableMapping[str, str]] = None) -> Iterator['InputSnapshot']:
        self.apply(environ)
        try:
            yield self
        finally:
            self.restore(environ)
