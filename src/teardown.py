#!/usr/bin/env python3

# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Tear down the cross-account pipeline.

Deletes the application deployments, the pipeline and its artifact channel,
the cross-account roles and the repository. Every step is attempted, also
when an earlier step failed. The failed steps are reported at the end.

Usage:
    teardown.py [-v... | --verbose...] [--config <path>]

    teardown.py -h | --help

    teardown.py --version

Options:
    -h, --help  Show this help message.

    --config <path>
                The pipeline configuration file. Defaults to the file set
                in the PIPELINE_CONFIG environment variable, if any.

    -v, --verbose
                Show verbose logging information.
"""

import logging
import sys

from docopt import docopt

from cloudformation import CloudFormation
from config import Config, PIPELINE_STACK_NAME, VERSION
from errors import Error
from logger import configure_logger, set_log_level
from repo import Repo
from roles import role_descriptors
from s3 import S3
from thread import join_all_best_effort, start_thread

LOGGER = configure_logger(__name__)


class Teardown:
    def __init__(self, config):
        self.config = config
        self.failures = []

    def _step(self, name, target, *args):
        try:
            return target(*args)
        except Exception as error:  # pylint: disable=broad-except
            LOGGER.exception("Teardown step %s failed", name)
            self.failures.append((name, error))
            return None

    def _delete_stack(self, stack_name, profile_name, account_id):
        CloudFormation(
            region=self.config.region,
            role=self.config.session(profile_name),
            stack_name=stack_name,
            wait=True,
            account_id=account_id,
        ).delete_stack()

    def _start_delete(self, stack_name, profile_name, account_id):
        return start_thread(
            self._delete_stack,
            stack_name,
            profile_name,
            account_id,
            name=f"delete {stack_name} in {account_id}",
        )

    def delete_application_stacks(self):
        return [
            self._start_delete(
                environment.deployment_stack_name,
                environment.profile,
                environment.account_id,
            )
            for environment in self.config.environments
        ]

    def empty_artifact_bucket(self):
        return S3(
            self.config.region,
            self.config.artifact_bucket_name,
            self.config.pipeline_session(),
        ).empty_bucket()

    def delete_pipeline_stack(self):
        self._delete_stack(
            PIPELINE_STACK_NAME,
            self.config.profiles["pipeline"],
            self.config.tools_account_id,
        )

    def delete_role_stacks(self):
        return [
            self._start_delete(
                descriptor.stack_name,
                descriptor.profile,
                descriptor.account_id,
            )
            for descriptor in role_descriptors(self.config)
        ]

    def delete_repository_stack(self):
        Repo(self.config, self.config.pipeline_session()).delete()

    def run(self):
        """
        Returns the failed steps as a list of (step name, exception) tuples.
        """
        self.failures = []
        threads = self._step(
            "delete application stacks",
            self.delete_application_stacks,
        ) or []
        self._step("empty artifact bucket", self.empty_artifact_bucket)
        self._step("delete pipeline stack", self.delete_pipeline_stack)
        threads.extend(self._step(
            "delete role stacks",
            self.delete_role_stacks,
        ) or [])
        self._step("delete repository stack", self.delete_repository_stack)
        self.failures.extend(join_all_best_effort(threads))

        if self.failures:
            LOGGER.error(
                "Teardown finished with %d failed step(s): %s",
                len(self.failures),
                ", ".join(name for name, _ in self.failures),
            )
        else:
            LOGGER.info("Teardown finished")
        return self.failures


def main():
    options = docopt(__doc__, version=VERSION, options_first=True)

    # In case the user asked for verbose logging, increase
    # the log level to debug.
    if options["--verbose"] > 0:
        set_log_level(logging.DEBUG, [__name__, "cloudformation", "repo", "s3"])
    if options["--verbose"] > 1:
        # Also enable DEBUG mode for other libraries, like boto3
        logging.basicConfig(level=logging.DEBUG)

    LOGGER.debug("Input arguments: %s", options)

    try:
        config = Config(options["--config"])
    except Error as error:
        LOGGER.error("Teardown failed: %s", error)
        sys.exit(1)

    if Teardown(config).run():
        sys.exit(1)


if __name__ == "__main__":
    main()
