from __future__ import annotations

from typing import Optional


class ProfileBuildError(RuntimeError):
    """Base class for fatal profile build failures."""


class ConfigurationConflict(ProfileBuildError):
    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key


class UnknownVariant(ProfileBuildError):
    def __init__(self, variant: str) -> None:
        super().__init__(f"Unknown build variant: {variant!r}")
        self.variant = variant


class InvalidApplication(ProfileBuildError):
    def __init__(self, app: str, message: str) -> None:
        super().__init__(f"{app}: {message}")
        self.app = app


class PackagingIOError(ProfileBuildError):
    def __init__(self, path: str, message: str, app: Optional[str] = None) -> None:
        prefix = f"{app}: " if app else ""
        super().__init__(f"{prefix}cannot write {path}: {message}")
        self.path = path
        self.app = app


class MissingLocaleResource(ProfileBuildError):
    def __init__(self, locale: str, app: str, looked_in: str) -> None:
        super().__init__(f"{app}: no resources for locale {locale} (looked in {looked_in})")
        self.locale = locale
        self.app = app


class MissingDistributionOverlay(ProfileBuildError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Distribution directory missing or unreadable: {path}")
        self.path = path


class MalformedDocument(ProfileBuildError):
    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
