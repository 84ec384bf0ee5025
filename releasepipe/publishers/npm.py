"""npm registry client.

Validates that the registry is reachable and the user authenticated, then
publishes with `npm publish`. A publish rejected for a missing or expired
one-time password is retried with a fresh OTP when a callback can supply
one; this is the only retried operation of a release.
"""

import logging
import re
import subprocess
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Any

from releasepipe.exceptions import RegistryAuthError, RegistryTimeoutError
from releasepipe.publishers.base import PublishStatus
from releasepipe.utils.shell import ShellError
from releasepipe.utils.version import get_prerelease

if TYPE_CHECKING:
    from releasepipe.config.models import NpmOptions
    from releasepipe.log import Logger
    from releasepipe.utils.shell import Shell

logger = logging.getLogger(__name__)

REGISTRY_TIMEOUT = 5  # seconds
DEFAULT_TAG = "latest"
NPM_BASE_URL = "https://www.npmjs.com/package/"
OTP_ERROR_PATTERN = re.compile(r"one-time pass|EOTP")

OtpCallback = Callable[[Callable[[str], Any]], Any]


class NpmClient:
    """Publishes the package; owns is_published and status."""

    def __init__(
        self,
        options: "NpmOptions",
        shell: "Shell",
        log: "Logger",
        is_dry_run: bool = False,
    ) -> None:
        self.options = options
        self.shell = shell
        self.log = log
        self.is_dry_run = is_dry_run
        self.is_published = False
        self.status = PublishStatus.PENDING

    def validate(self) -> None:
        """Check the registry when publishing is enabled.

        Raises:
            RegistryTimeoutError: If `npm ping` does not succeed in time
            RegistryAuthError: If `npm whoami` fails
        """
        if not self.options.publish:
            return
        if not self.is_registry_up():
            raise RegistryTimeoutError(REGISTRY_TIMEOUT)
        if not self.is_authenticated():
            raise RegistryAuthError()

    def is_registry_up(self) -> bool:
        """Race `npm ping` against REGISTRY_TIMEOUT; slower counts as down.

        The ping subprocess is killed at the same deadline, so the worker
        never outlives this call.
        """
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="npm-ping")
        future = pool.submit(
            self.shell.run, "npm ping", read_only=True, timeout=REGISTRY_TIMEOUT
        )
        try:
            future.result(timeout=REGISTRY_TIMEOUT)
            return True
        except (FutureTimeoutError, subprocess.TimeoutExpired):
            logger.debug("npm ping timed out after %ss", REGISTRY_TIMEOUT)
            return False
        except (ShellError, OSError) as e:
            logger.debug("npm ping failed: %s", e)
            return False
        finally:
            pool.shutdown(wait=True)

    def is_authenticated(self) -> bool:
        try:
            self.shell.run("npm whoami", read_only=True)
        except ShellError as e:
            logger.debug("npm whoami failed: %s", e)
            return False
        return True

    def get_package_url(self) -> str:
        return f"{NPM_BASE_URL}{self.options.name}"

    def get_tag(
        self,
        tag: str | None = None,
        version: str | None = None,
        is_pre_release: bool = False,
    ) -> str:
        """Dist-tag to publish under.

        Pre-releases use their first pre-release identifier (1.1.0-beta.0 is
        published as "beta"); numeric-only pre-releases keep the given tag.
        """
        tag = tag or DEFAULT_TAG
        if not is_pre_release or not version:
            return tag
        prerelease = get_prerelease(version)
        if prerelease and isinstance(prerelease[0], str):
            return prerelease[0]
        return tag

    def publish(
        self,
        tag: str | None = None,
        version: str | None = None,
        is_pre_release: bool = False,
        otp: str | None = None,
        otp_callback: OtpCallback | None = None,
    ) -> Any:
        """Publish the package.

        A private package is not published: a warning is logged and the
        status becomes SKIPPED. On an OTP rejection the otp_callback, when
        given, receives a function that repeats this exact call with a new
        OTP. Any other failure propagates.
        """
        tag = tag or self.options.tag
        if otp is None:
            otp = self.options.otp
        name = self.options.name or ""

        if self.options.private:
            self.log.warn("Skip publish: package is private.")
            self.status = PublishStatus.SKIPPED
            return True

        command = f"npm publish {self.options.publish_path} --tag {self.get_tag(tag, version, is_pre_release)}"
        if name.startswith("@") and self.options.access:
            command += f" --access {self.options.access}"
        if otp:
            command += f" --otp {otp}"

        try:
            self.shell.run(command)
        except ShellError as e:
            if OTP_ERROR_PATTERN.search(str(e)):
                if otp is not None:
                    self.log.warn("The provided OTP is incorrect or has expired.")
                if otp_callback is not None:
                    return otp_callback(
                        lambda new_otp: self.publish(
                            tag=tag,
                            version=version,
                            is_pre_release=is_pre_release,
                            otp=new_otp,
                            otp_callback=otp_callback,
                        )
                    )
            self.status = PublishStatus.FAILED
            raise

        if not self.is_dry_run:
            self.is_published = True
            self.status = PublishStatus.SUCCESS
        return True
