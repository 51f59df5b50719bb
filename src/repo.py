# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Module used for defining the CodeCommit repository the pipeline tracks, the
stack that creates it and the initial push of the source into it.
"""

import json
import os
import subprocess

from botocore.exceptions import ClientError

from cloudformation import CloudFormation
from config import REPOSITORY_STACK_NAME
from errors import SourcePushError
from logger import configure_logger
from partition import get_aws_domain

LOGGER = configure_logger(__name__)
REMOTE_NAME = "origin"
INITIAL_COMMIT_MESSAGE = "Initial commit"


class Repo:
    def __init__(self, config, session, runner=subprocess.run):
        self.config = config
        self.name = config.repository_name
        self.session = session
        self.stack_name = REPOSITORY_STACK_NAME
        self.runner = runner

    def repo_exists(self):
        try:
            codecommit = self.session.client(
                'codecommit',
                region_name=self.config.region,
            )
            repository = codecommit.get_repository(repositoryName=self.name)
            if repository['repositoryMetadata']['Arn']:
                return True
        except ClientError as error:
            if error.response['Error']['Code'] != 'RepositoryDoesNotExistException':
                raise
            LOGGER.debug("Repository %s does not exist yet", self.name)

        return False

    def _cloudformation(self, template=None):
        return CloudFormation(
            region=self.config.region,
            role=self.session,
            stack_name=self.stack_name,
            template_body=json.dumps(template) if template else None,
            wait=True,
            account_id=self.config.tools_account_id,
        )

    def create_update(self, template):
        """
        Deploys the repository stack. A repository that exists without the
        stack was created outside of this tooling and is left untouched.

        Returns True when the stack was deployed.
        """
        cloudformation = self._cloudformation(template)
        # Create the repo stack if the repo is missing
        create_stack = not self.repo_exists()
        # Update the stack if the repo and the stack both exist
        update_stack = not create_stack and bool(cloudformation.get_stack_status())
        if create_stack or update_stack:
            LOGGER.info('Creating Stack for CodeCommit Repository %s', self.name)
            cloudformation.create_stack()
            return True

        LOGGER.info(
            'Repository %s exists outside of %s, skipping its deployment',
            self.name,
            self.stack_name,
        )
        return False

    def delete(self):
        self._cloudformation().delete_stack(wait_override=True)

    @property
    def clone_url_http(self):
        return (
            f"https://git-codecommit.{self.config.region}."
            f"{get_aws_domain(self.config.region)}/v1/repos/{self.name}"
        )

    def _git(self, source_path, *args, check=True):
        LOGGER.debug("Running git %s in %s", " ".join(args), source_path)
        return self.runner(
            ["git", *args],
            cwd=source_path,
            check=check,
            capture_output=True,
            text=True,
        )

    def push_initial_commit(self, source_path="."):
        """
        Commits everything in source_path and pushes it to the tracked branch
        of the repository, which triggers the first pipeline run.
        """
        branch = self.config.branch
        try:
            if not os.path.isdir(os.path.join(source_path, ".git")):
                self._git(source_path, "init")
            self._git(source_path, "checkout", "-B", branch)
            self._git(source_path, "add", ".")
            staged = self._git(
                source_path, "diff", "--cached", "--quiet", check=False,
            )
            if staged.returncode != 0:
                self._git(source_path, "commit", "-m", INITIAL_COMMIT_MESSAGE)
            remotes = self._git(source_path, "remote").stdout.split()
            if REMOTE_NAME in remotes:
                self._git(source_path, "remote", "remove", REMOTE_NAME)
            self._git(source_path, "remote", "add", REMOTE_NAME, self.clone_url_http)
            self._git(
                source_path,
                "push",
                "--set-upstream",
                REMOTE_NAME,
                f"HEAD:{branch}",
            )
        except subprocess.CalledProcessError as error:
            LOGGER.error(
                "git %s failed: %s",
                " ".join(error.cmd[1:]),
                error.stderr,
            )
            raise SourcePushError(
                f"Failed to push the source to {self.name}: {error}",
            ) from error
        except OSError as error:
            raise SourcePushError(
                f"Unable to run git in {source_path}: {error}",
            ) from error
        LOGGER.info("Pushed %s to %s of %s", source_path, branch, self.name)
