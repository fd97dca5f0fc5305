from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class RemoteDirection(Enum):
    FETCH = "fetch"
    PUSH = "push"


class ProvisionStage(Enum):
    RESOLVING_SOURCE = "resolving source"
    CLONING = "cloning"
    RUNNING_CUSTOMIZER = "running customizer"


@dataclass(frozen=True)
class RemoteRecord:
    name: str
    url: str
    direction: RemoteDirection


@dataclass(frozen=True)
class ParsedRemoteUrl:
    domain: str
    user: str
    project: str

    @property
    def browse_url(self) -> str:
        return f"https://{self.domain}/{self.user}/{self.project}"


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    origin: str
    customizer: str | None = None
    description: str | None = None


@dataclass
class ProvisionRequest:
    source_text: str
    target_directory: Path
    customizer_override: str | None = None


@dataclass(frozen=True)
class ResolvedSource:
    clone_url: str
    customizer_candidate: str


@dataclass
class ProvisionResult:
    clone_url: str
    target_directory: Path
    customizer_path: Path
    customizer_ran: bool


class GitExtraError(Exception):
    """Base class for errors that abort a git-extra command."""

    stage: ProvisionStage | None = None


class GitError(GitExtraError):
    pass


class CatalogError(GitExtraError):
    def __init__(self, path: Path, detail: str):
        super().__init__(f"Unable to read repository catalog '{path}': {detail}")
        self.path = path


class UnrecognizedSourceError(GitExtraError):
    stage = ProvisionStage.RESOLVING_SOURCE

    def __init__(self, source_text: str):
        super().__init__(
            f"Repository name '{source_text}' must start with https://, git@ "
            "or file://, or be a name from the repository catalog"
        )
        self.source_text = source_text


class CloneError(GitExtraError):
    stage = ProvisionStage.CLONING

    def __init__(self, url: str, detail: str):
        super().__init__(f"Unable to run `git clone` for '{url}': {detail}")
        self.url = url


class CustomizerError(GitExtraError):
    stage = ProvisionStage.RUNNING_CUSTOMIZER

    def __init__(self, path: Path, detail: str):
        super().__init__(
            f"There was a problem running customizer file '{path}': {detail}"
        )
        self.path = path
