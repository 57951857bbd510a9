"""GitHub CLI (`gh api`) wrapper."""

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass

from shell_toolkit.actions import RealAction, SystemAction
from shell_toolkit.process import Result


class ApiCallFailure(RuntimeError):
    def __init__(self, returncode: int, stdout: str, stderr: str):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f'API call failed with exit code = {returncode}, stdout="{stdout}", stderr="{stderr}"'
        )


class Access(enum.Enum):
    INTERNAL = "internal"
    PRIVATE = "private"
    PUBLIC = "public"


class Permission(enum.Enum):
    PULL = "pull"
    PUSH = "push"
    ADMIN = "admin"
    MAINTAIN = "maintain"
    TRIAGE = "triage"


@dataclass
class Permissions:
    pull: bool
    push: bool
    admin: bool


@dataclass
class Collaborator:
    login: str
    id: int
    avatar_url: str
    url: str
    permissions: Permissions

    @classmethod
    def from_dict(cls, data: dict) -> "Collaborator":
        perms = data.get("permissions", {})
        return cls(
            login=data["login"],
            id=data["id"],
            avatar_url=data.get("avatar_url", ""),
            url=data.get("url", ""),
            permissions=Permissions(
                pull=perms.get("pull", False),
                push=perms.get("push", False),
                admin=perms.get("admin", False),
            ),
        )


class GitHub:
    def __init__(self, action: SystemAction | None = None):
        self.action = action or RealAction()

    def api(
        self,
        endpoint: str,
        *,
        fields: Mapping[str, str] | None = None,
        raw_fields: Mapping[str, str] | None = None,
        hostname: str | None = None,
        include: bool = False,
        input_file: str | None = None,
        body: str | None = None,
        jq: str | None = None,
        method: str | None = None,
        silent: bool = False,
    ) -> Result:
        """Call ``gh api ENDPOINT``.

        ``body`` is sent on stdin (``--input -``). Raises ApiCallFailure on a
        non-zero exit or if anything was written to stderr.
        """
        command = ["gh", "api", endpoint]
        for key, value in (fields or {}).items():
            command += ["--field", f"{key}={value}"]
        for key, value in (raw_fields or {}).items():
            command += ["--raw-field", f"{key}={value}"]
        if hostname:
            command += ["--hostname", hostname]
        if include:
            command.append("--include")
        if input_file:
            command += ["--input", input_file]
        if body is not None:
            command += ["--input", "-"]
        if jq:
            command += ["--jq", jq]
        if method:
            command += ["--method", method]
        if silent:
            command.append("--silent")

        result = self.action.run(command, stdin=body)
        if not result.succeeded or result.stderr:
            raise ApiCallFailure(result.returncode, result.stdout, result.stderr)
        return result

    def create_repository(
        self,
        organization: str,
        name: str,
        *,
        description: str | None = None,
        gitignore: str | None = None,
        homepage: str | None = None,
        license: str | None = None,
        access: Access | None = None,
        team: int | None = None,
    ) -> Result:
        """Create a repository under an organization on github.com."""
        payload: dict = {"name": name}
        if description is not None:
            payload["description"] = description
        if homepage is not None:
            payload["homepage"] = homepage
        if access is not None:
            payload["private"] = access is not Access.PUBLIC
            payload["visibility"] = access.value
        if gitignore is not None:
            payload["gitignore_template"] = gitignore
        if license is not None:
            payload["license_template"] = license
        if team is not None:
            payload["team_id"] = team
        return self.api(f"/orgs/{organization}/repos", method="POST", body=json.dumps(payload))

    def repository_collaborators(
        self, owner: str, repo: str, hostname: str | None = None
    ) -> list[Collaborator]:
        result = self.api(f"/repos/{owner}/{repo}/collaborators", hostname=hostname)
        return [Collaborator.from_dict(item) for item in json.loads(result.stdout or "[]")]

    def add_repository_collaborator(
        self,
        owner: str,
        repo: str,
        username: str,
        permission: Permission,
        hostname: str | None = None,
    ) -> str:
        result = self.api(
            f"/repos/{owner}/{repo}/collaborators/{username}",
            hostname=hostname,
            method="PUT",
            body=json.dumps({"permission": permission.value}),
        )
        return result.stdout

    def remove_repository_collaborator(
        self, owner: str, repo: str, username: str, hostname: str | None = None
    ) -> None:
        self.api(
            f"/repos/{owner}/{repo}/collaborators/{username}", hostname=hostname, method="DELETE"
        )
