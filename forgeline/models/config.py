"""User configuration and engine discovery models."""

from __future__ import annotations

from pydantic import Field

from forgeline.models.jobs import WireModel


class ProjectConfig(WireModel):
    """A named project file (``.uproject``) the user builds regularly."""

    name: str = Field(min_length=1)
    path: str = Field(min_length=1)


class UserConfig(WireModel):
    """Persisted user state: project list plus the chosen engine root."""

    projects: list[ProjectConfig] = []
    engine_path: str | None = Field(default=None, min_length=1)

    def find_project(self, name: str) -> ProjectConfig | None:
        for project in self.projects:
            if project.name == name:
                return project
        return None


class EngineInstall(WireModel):
    """An engine root found on disk."""

    id: str
    name: str
    path: str
    version: str | None = None


class EngineDetectResponse(WireModel):
    installs: list[EngineInstall] = []
