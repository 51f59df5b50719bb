# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""Config module used by the bootstrap and teardown tooling.

Combines the optional pipeline configuration file with the
TOOLS_ACCOUNT_ID, UAT_ACCOUNT_ID and PROD_ACCOUNT_ID environment variables
into one validated configuration object.
"""

import os
from dataclasses import dataclass

import boto3
import yaml

from errors import InvalidConfigError, MissingAccountIdError
from logger import configure_logger
from partition import get_partition
from schema_validation import SchemaValidation

LOGGER = configure_logger(__name__)

DEFAULT_REGION = "us-west-2"
DEFAULT_BRANCH = "main"
DEFAULT_TEMPLATES_PATH = "templates"
DEFAULT_OUTPUT_FILE = ".cdk_output"
DEFAULT_PROFILES = {
    "pipeline": "pipeline",
    "uat": "uat",
    "prod": "prod",
}
ACCOUNT_ENVIRONMENT_VARIABLES = {
    "tools": "TOOLS_ACCOUNT_ID",
    "uat": "UAT_ACCOUNT_ID",
    "prod": "PROD_ACCOUNT_ID",
}
REPOSITORY_STACK_NAME = "RepositoryStack"
PIPELINE_STACK_NAME = "CrossAccountPipelineStack"
PIPELINE_NAME = "CrossAccountPipeline"
APPLICATION_STAGES = ("uat", "prod")
VERSION = "1.0.0"


def application_stack_name(stage_name):
    """
    Returns the name of the synthesized application stack of a stage
    """
    return f"{stage_name.capitalize()}ApplicationStack"


@dataclass(frozen=True)
class DeploymentEnvironment:
    """A downstream account the pipeline deploys the application into"""
    name: str
    account_id: str
    profile: str

    @property
    def stage(self):
        return self.name.capitalize()

    @property
    def application_stack_name(self):
        return application_stack_name(self.name)

    @property
    def deployment_stack_name(self):
        return f"{self.stage}ApplicationDeploymentStack"


class Config:
    """Class used for modeling the pipeline configuration and its properties
    """

    def __init__(self, config_path=None, environ=None):
        self.environ = os.environ if environ is None else environ
        self.config_path = config_path or self.environ.get("PIPELINE_CONFIG")
        self.config_contents = {}
        self.tools_account_id = None
        self.uat_account_id = None
        self.prod_account_id = None
        self.region = DEFAULT_REGION
        self.profiles = dict(DEFAULT_PROFILES)
        self.branch = DEFAULT_BRANCH
        self.admin_permissions = True
        self.templates_path = DEFAULT_TEMPLATES_PATH
        self.output_file = DEFAULT_OUTPUT_FILE
        self._load_config_file()
        self._parse_config()

    def _load_config_file(self):
        """
        Loads the pipeline configuration file, when one is given
        """
        if not self.config_path:
            return
        try:
            with open(self.config_path, encoding="utf-8") as config:
                self.config_contents = yaml.safe_load(config) or {}
        except OSError as error:
            raise InvalidConfigError(
                f"Unable to read the configuration file {self.config_path}: "
                f"{error}"
            ) from error
        except yaml.YAMLError as error:
            raise InvalidConfigError(
                f"The configuration file {self.config_path} is not valid "
                f"YAML: {error}"
            ) from error

    def _parse_config(self):
        """
        Validates the configuration file contents, applies the environment
        overrides and executes _validate
        """
        validated = SchemaValidation(self.config_contents).validated
        accounts = validated.get("accounts", {})
        for name, variable in ACCOUNT_ENVIRONMENT_VARIABLES.items():
            account_id = self.environ.get(variable, "").strip() or accounts.get(name)
            setattr(self, f"{name}_account_id", account_id)

        self.region = (
            validated.get("region")
            or self.environ.get("AWS_REGION")
            or DEFAULT_REGION
        )
        self.profiles.update(validated.get("profiles", {}))
        self.branch = validated.get("branch", DEFAULT_BRANCH)
        self.admin_permissions = validated.get("admin-permissions", True)
        self.templates_path = validated.get(
            "templates-path", DEFAULT_TEMPLATES_PATH,
        )
        self.output_file = validated.get("output-file", DEFAULT_OUTPUT_FILE)

        self._validate()

    def _validate(self):
        """
        Ensures the account ids are all set and the region belongs to a
        known partition
        """
        missing = [
            variable
            for name, variable in ACCOUNT_ENVIRONMENT_VARIABLES.items()
            if not getattr(self, f"{name}_account_id")
        ]
        if missing:
            LOGGER.error(
                "Please set TOOLS_ACCOUNT_ID, UAT_ACCOUNT_ID, and "
                "PROD_ACCOUNT_ID. Missing: %s",
                ", ".join(missing),
            )
            raise MissingAccountIdError(
                f"Missing required account ids: {', '.join(missing)}"
            )
        get_partition(self.region)

    @property
    def repository_name(self):
        return f"repo-{self.tools_account_id}"

    @property
    def artifact_bucket_name(self):
        return f"artifact-bucket-{self.tools_account_id}"

    @property
    def environments(self):
        return [
            DeploymentEnvironment(
                name="uat",
                account_id=self.uat_account_id,
                profile=self.profiles["uat"],
            ),
            DeploymentEnvironment(
                name="prod",
                account_id=self.prod_account_id,
                profile=self.profiles["prod"],
            ),
        ]

    def session(self, profile_name):
        """
        Returns the boto3 session for the given named profile
        """
        LOGGER.debug("Creating session for profile %s", profile_name)
        return boto3.Session(
            profile_name=profile_name,
            region_name=self.region,
        )

    def pipeline_session(self):
        return self.session(self.profiles["pipeline"])
