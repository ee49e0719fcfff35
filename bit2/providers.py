"""
providers.py

Responsibility: Hosting providers a bit2 project can be deployed to.

Each provider wraps its own CLI (`wrangler`, `vercel`, `netlify`). Deployment URLs are
scraped from CLI output with a regex and fall back to the provider's canonical URL
for the project when the output format changes.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from bit2 import shell
from bit2.errors import Bit2Error, ErrorCode
from bit2.shell import CommandError, Runner


class Provider:
    name = ""
    display_name = ""
    cli: tuple[str, ...] = ()
    adapter = ""
    builds_locally = True
    install_hint = ""
    login_hint = ""
    _url_re: re.Pattern[str] = re.compile(r"$^")

    def __init__(self, runner: Runner | None = None) -> None:
        self._run = runner or shell.run

    def _cmd(self, *args: str) -> list[str]:
        return [*self.cli, *args]

    def dashboard_url(self, project: str) -> str:
        raise NotImplementedError

    def canonical_url(self, project: str) -> str:
        raise NotImplementedError

    def is_available(self) -> bool:
        return shell.succeeds(self._cmd("--version"), runner=self._run)

    def is_authenticated(self) -> bool:
        return shell.succeeds(self._cmd("whoami"), runner=self._run)

    def add_adapter(self, cwd: str | Path) -> None:
        """
        Install the Astro SSR adapter for this provider into the project.
        """
        self._run(["bunx", "astro", "add", self.name, "--yes"], cwd=cwd)

    def project_exists(self, project: str) -> bool:
        raise NotImplementedError

    def create_project(self, project: str, cwd: str | Path) -> None:
        raise NotImplementedError

    def set_env(self, project: str, key: str, value: str, cwd: str | Path) -> None:
        raise NotImplementedError

    def _deploy_cmd(self, project: str) -> list[str]:
        raise NotImplementedError

    def deploy(self, project: str, cwd: str | Path) -> str:
        """
        Build (if the provider expects prebuilt output) and deploy; returns the live URL.
        """
        if self.builds_locally:
            self._run(["bun", "run", "build"], cwd=cwd)
        out = self._run(self._deploy_cmd(project), cwd=cwd)
        return self.parse_deployment_url(out.stdout + "\n" + out.stderr) or self.canonical_url(project)

    def parse_deployment_url(self, output: str) -> str | None:
        matches = self._url_re.findall(output)
        return matches[-1] if matches else None

    def list_deployments(self, project: str) -> str:
        raise NotImplementedError

    def delete_project(self, project: str) -> None:
        raise NotImplementedError


class CloudflareProvider(Provider):
    name = "cloudflare"
    display_name = "Cloudflare Pages"
    cli = ("bunx", "wrangler")
    adapter = "@astrojs/cloudflare"
    install_hint = "bun add -g wrangler"
    login_hint = "bunx wrangler login"
    _url_re = re.compile(r"https://[\w.-]+\.pages\.dev")

    def dashboard_url(self, project: str) -> str:
        return f"https://dash.cloudflare.com/pages/view/{project}"

    def canonical_url(self, project: str) -> str:
        return f"https://{project}.pages.dev"

    def project_exists(self, project: str) -> bool:
        try:
            out = self._run(self._cmd("pages", "project", "list", "--json")).stdout
            projects = json.loads(out or "[]")
        except (CommandError, ValueError):
            return False
        return any(isinstance(p, dict) and p.get("name") == project for p in projects)

    def create_project(self, project: str, cwd: str | Path) -> None:
        self._run(self._cmd("pages", "project", "create", project, "--production-branch", "main"), cwd=cwd)

    def set_env(self, project: str, key: str, value: str, cwd: str | Path) -> None:
        self._run(self._cmd("pages", "secret", "put", key, "--project-name", project), cwd=cwd, input_text=value)

    def _deploy_cmd(self, project: str) -> list[str]:
        return self._cmd("pages", "deploy", "dist", "--project-name", project, "--branch", "main")

    def list_deployments(self, project: str) -> str:
        return self._run(self._cmd("pages", "deployment", "list", f"--project-name={project}")).stdout

    def delete_project(self, project: str) -> None:
        self._run(self._cmd("pages", "project", "delete", project, "--yes"))


class VercelProvider(Provider):
    name = "vercel"
    display_name = "Vercel"
    cli = ("vercel",)
    adapter = "@astrojs/vercel"
    builds_locally = False
    install_hint = "bun add -g vercel"
    login_hint = "vercel login"
    _url_re = re.compile(r"https://[\w.-]+\.vercel\.app")

    def dashboard_url(self, project: str) -> str:
        return "https://vercel.com/dashboard"

    def canonical_url(self, project: str) -> str:
        return f"https://{project}.vercel.app"

    def project_exists(self, project: str) -> bool:
        return shell.succeeds(self._cmd("project", "inspect", project), runner=self._run)

    def create_project(self, project: str, cwd: str | Path) -> None:
        self._run(self._cmd("project", "add", project), cwd=cwd)
        self._run(self._cmd("link", "--yes", "--project", project), cwd=cwd)

    def set_env(self, project: str, key: str, value: str, cwd: str | Path) -> None:
        self._run(self._cmd("env", "add", key, "production"), cwd=cwd, input_text=value)

    def _deploy_cmd(self, project: str) -> list[str]:
        return self._cmd("deploy", "--prod", "--yes")

    def list_deployments(self, project: str) -> str:
        return self._run(self._cmd("ls", project)).stdout

    def delete_project(self, project: str) -> None:
        self._run(self._cmd("project", "rm", project), input_text="y\n")


class NetlifyProvider(Provider):
    name = "netlify"
    display_name = "Netlify"
    cli = ("netlify",)
    adapter = "@astrojs/netlify"
    install_hint = "bun add -g netlify-cli"
    login_hint = "netlify login"
    _url_re = re.compile(r"https://[\w.-]+\.netlify\.app")

    def dashboard_url(self, project: str) -> str:
        return f"https://app.netlify.com/sites/{project}"

    def canonical_url(self, project: str) -> str:
        return f"https://{project}.netlify.app"

    def is_authenticated(self) -> bool:
        return shell.succeeds(self._cmd("status"), runner=self._run)

    def _site_data(self, project: str) -> str:
        return json.dumps({"site_id": project})

    def project_exists(self, project: str) -> bool:
        return shell.succeeds(self._cmd("api", "getSite", "--data", self._site_data(project)), runner=self._run)

    def create_project(self, project: str, cwd: str | Path) -> None:
        self._run(self._cmd("sites:create", "--name", project), cwd=cwd)
        self._run(self._cmd("link", "--name", project), cwd=cwd)

    def set_env(self, project: str, key: str, value: str, cwd: str | Path) -> None:
        self._run(self._cmd("env:set", key, value), cwd=cwd)

    def _deploy_cmd(self, project: str) -> list[str]:
        return self._cmd("deploy", "--prod", "--dir", "dist")

    def list_deployments(self, project: str) -> str:
        return self._run(self._cmd("api", "listSiteDeploys", "--data", self._site_data(project))).stdout

    def delete_project(self, project: str) -> None:
        self._run(self._cmd("sites:delete", project, "--force"))


PROVIDERS: dict[str, type[Provider]] = {
    p.name: p for p in (CloudflareProvider, VercelProvider, NetlifyProvider)
}


def get_provider(name: str, runner: Runner | None = None) -> Provider:
    try:
        cls = PROVIDERS[name.strip().lower()]
    except KeyError:
        raise Bit2Error(
            f"Unsupported provider: {name}",
            ErrorCode.INVALID_INPUT,
            [f"Supported providers: {', '.join(PROVIDERS)}"],
        ) from None
    return cls(runner)
