#!/usr/bin/env python3

# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Bootstrap the cross-account pipeline.

The repository and pipeline templates are synthesized before anything is
deployed. The roles in the UAT and Prod accounts are deployed first, as the pipeline
refers to them. The pipeline stack then creates the artifact encryption key,
whose ARN is only known after it is deployed. The roles are re-deployed with
that key ARN, so they can decrypt the pipeline artifacts. Last, the source is
pushed to the repository, which triggers the first pipeline run.

Usage:
    bootstrap.py [-v... | --verbose...] [--config <path>] [--skip-push]
            [--source-path <path>]

    bootstrap.py -h | --help

    bootstrap.py --version

Options:
    -h, --help  Show this help message.

    --config <path>
                The pipeline configuration file. Defaults to the file set
                in the PIPELINE_CONFIG environment variable, if any.

    --skip-push
                Do not push the source to the repository. The first
                pipeline run starts when you push it yourself.

    --source-path <path>
                The directory holding the source to push [default: .].

    -v, --verbose
                Show verbose logging information.
"""

import json
import logging
import os
import sys
from enum import Enum

from docopt import docopt

from cloudformation import CloudFormation
from config import Config, PIPELINE_STACK_NAME, REPOSITORY_STACK_NAME, VERSION
from errors import Error, KeyArnNotFoundError, TemplateSynthesisError
from logger import configure_logger, set_log_level
from outputs import find_key_arn, read_key_arn_from_file, write_outputs
from repo import Repo
from roles import role_descriptors
from thread import join_all, start_thread

LOGGER = configure_logger(__name__)


class BootstrapState(Enum):
    INIT = "Init"
    ROLES_PHASE1_DEPLOYED = "RolesPhase1Deployed"
    CHANNEL_AND_PIPELINE_DEPLOYED = "ChannelAndPipelineDeployed"
    KEY_EXTRACTED = "KeyExtracted"
    ROLES_PHASE2_DEPLOYED = "RolesPhase2Deployed"
    SOURCE_PUSHED = "SourcePushed"
    DONE = "Done"
    FAILED = "Failed"


class Bootstrap:
    """
    Drives the bootstrap phases in order and records every state
    transition. Any failure moves it to FAILED and is raised to the caller,
    nothing that was deployed already is rolled back.
    """

    def __init__(self, config, templates=None, repo=None):
        self.config = config
        self._templates = templates
        self._repo = repo
        self.state = BootstrapState.INIT
        self.transitions = []
        self.key_arn = None
        self.pipeline_outputs = {}

    @property
    def templates(self):
        if self._templates is None:
            # Importing the CDK is slow, only do so when synthesizing
            from synth import synthesize_templates  # pylint: disable=import-outside-toplevel
            try:
                self._templates = synthesize_templates(self.config)
            except Exception as error:  # pylint: disable=broad-except
                raise TemplateSynthesisError(
                    f"Unable to synthesize the templates: {error}",
                ) from error
        return self._templates

    def synthesize(self):
        """
        Synthesizes the repository and pipeline templates, before any
        stack is deployed.
        """
        return self.templates

    @property
    def repo(self):
        if self._repo is None:
            self._repo = Repo(self.config, self.config.pipeline_session())
        return self._repo

    def _transition(self, state):
        LOGGER.info("Bootstrap state: %s -> %s", self.state.value, state.value)
        self.transitions.append((self.state, state))
        self.state = state

    def _deploy_role(self, descriptor, key_arn=None):
        LOGGER.info(
            "Deploying %s %s",
            descriptor,
            "with the artifact key" if key_arn else "without a key",
        )
        cloudformation = CloudFormation(
            region=self.config.region,
            role=self.config.session(descriptor.profile),
            stack_name=descriptor.stack_name,
            local_template_path=descriptor.template_path(
                self.config.templates_path,
            ),
            parameters=descriptor.parameters(
                self.config.tools_account_id,
                key_arn,
            ),
            wait=True,
            account_id=descriptor.account_id,
        )
        return cloudformation.create_stack()

    def deploy_roles(self, key_arn=None):
        """
        Deploys the four role stacks concurrently. Returns once all of them
        converged, raises the first failure otherwise.
        """
        threads = [
            start_thread(
                self._deploy_role,
                descriptor,
                key_arn,
                name=str(descriptor),
            )
            for descriptor in role_descriptors(self.config)
        ]
        return join_all(threads)

    def _remove_output_file(self):
        if os.path.exists(self.config.output_file):
            LOGGER.debug("Removing %s", self.config.output_file)
            os.remove(self.config.output_file)

    def deploy_channel_and_pipeline(self):
        self._remove_output_file()
        self.repo.create_update(self.templates[REPOSITORY_STACK_NAME])

        cloudformation = CloudFormation(
            region=self.config.region,
            role=self.config.pipeline_session(),
            stack_name=PIPELINE_STACK_NAME,
            template_body=json.dumps(self.templates[PIPELINE_STACK_NAME]),
            wait=True,
            account_id=self.config.tools_account_id,
        )
        cloudformation.create_stack()
        self.pipeline_outputs = cloudformation.get_stack_outputs()
        write_outputs(
            self.config.output_file,
            PIPELINE_STACK_NAME,
            self.pipeline_outputs,
        )
        return self.pipeline_outputs

    def extract_key_arn(self):
        key_arn = find_key_arn(self.pipeline_outputs)
        if not key_arn:
            LOGGER.warning(
                "No KeyArn in the outputs of %s, reading %s instead",
                PIPELINE_STACK_NAME,
                self.config.output_file,
            )
            key_arn = read_key_arn_from_file(self.config.output_file)
        if not key_arn:
            raise KeyArnNotFoundError(
                f"{PIPELINE_STACK_NAME} did not publish the artifact "
                "encryption key ARN",
            )
        LOGGER.info("Artifact encryption key: %s", key_arn)
        self.key_arn = key_arn
        return key_arn

    def push_source(self, source_path="."):
        # The output file holds the key ARN and must not be committed
        self._remove_output_file()
        self.repo.push_initial_commit(source_path)

    def finish(self):
        self._remove_output_file()
        for environment in self.config.environments:
            LOGGER.info(
                "Once the pipeline finished, the %s endpoint is listed in "
                "the outputs of %s (profile %s). Run pipeline-endpoints to "
                "print them.",
                environment.stage,
                environment.deployment_stack_name,
                environment.profile,
            )

    def run(self, push_source=True, source_path="."):
        try:
            self.synthesize()

            self.deploy_roles()
            self._transition(BootstrapState.ROLES_PHASE1_DEPLOYED)

            self.deploy_channel_and_pipeline()
            self._transition(BootstrapState.CHANNEL_AND_PIPELINE_DEPLOYED)

            self.extract_key_arn()
            self._transition(BootstrapState.KEY_EXTRACTED)

            self.deploy_roles(self.key_arn)
            self._transition(BootstrapState.ROLES_PHASE2_DEPLOYED)

            if push_source:
                self.push_source(source_path)
                self._transition(BootstrapState.SOURCE_PUSHED)
            else:
                LOGGER.info(
                    "Skipping the push, push the source to %s to start "
                    "the pipeline",
                    self.repo.clone_url_http,
                )

            self.finish()
            self._transition(BootstrapState.DONE)
        except Exception:
            LOGGER.error(
                "Bootstrap failed after reaching %s",
                self.state.value,
            )
            self._transition(BootstrapState.FAILED)
            raise
        return self.state


def main():
    options = docopt(__doc__, version=VERSION, options_first=True)

    # In case the user asked for verbose logging, increase
    # the log level to debug.
    if options["--verbose"] > 0:
        set_log_level(logging.DEBUG, [
            __name__,
            "cloudformation",
            "repo",
            "config",
        ])
    if options["--verbose"] > 1:
        # Also enable DEBUG mode for other libraries, like boto3
        logging.basicConfig(level=logging.DEBUG)

    LOGGER.debug("Input arguments: %s", options)

    try:
        config = Config(options["--config"])
        Bootstrap(config).run(
            push_source=not options["--skip-push"],
            source_path=options["--source-path"],
        )
    except Error as error:
        LOGGER.error("Bootstrap failed: %s", error)
        sys.exit(1)


if __name__ == "__main__":
    main()
