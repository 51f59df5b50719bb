# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

# pylint: skip-file

import os

from mock import patch
from pytest import fixture, raises

from config import Config, DeploymentEnvironment, application_stack_name
from errors import InvalidConfigError, MissingAccountIdError

STUB_CONFIG_PATH = "{0}/stubs/stub_pipeline_config.yml".format(
    os.path.dirname(os.path.realpath(__file__))
)
ACCOUNT_ENVIRON = {
    "TOOLS_ACCOUNT_ID": "111",
    "UAT_ACCOUNT_ID": "222",
    "PROD_ACCOUNT_ID": "333",
}


@fixture
def cls():
    return Config(config_path=STUB_CONFIG_PATH, environ={})


def test_config_file_values(cls):
    assert cls.tools_account_id == "111111111111"
    assert cls.uat_account_id == "222222222222"
    assert cls.prod_account_id == "333333333333"
    assert cls.region == "eu-west-1"
    assert cls.branch == "release"
    assert cls.admin_permissions is False
    assert cls.output_file == ".pipeline_output"
    assert cls.templates_path == "templates"


def test_config_file_profiles_merge_with_defaults(cls):
    assert cls.profiles == {
        "pipeline": "tools-profile",
        "uat": "uat-profile",
        "prod": "prod",
    }


def test_defaults_from_environment_only():
    config = Config(environ=ACCOUNT_ENVIRON)
    assert config.config_path is None
    assert config.tools_account_id == "111"
    assert config.region == "us-west-2"
    assert config.branch == "main"
    assert config.admin_permissions is True
    assert config.output_file == ".cdk_output"
    assert config.profiles == {
        "pipeline": "pipeline",
        "uat": "uat",
        "prod": "prod",
    }


def test_environment_overrides_config_file():
    config = Config(
        config_path=STUB_CONFIG_PATH,
        environ={"UAT_ACCOUNT_ID": " 444 "},
    )
    assert config.uat_account_id == "444"
    assert config.tools_account_id == "111111111111"


def test_config_path_from_environment():
    config = Config(environ={"PIPELINE_CONFIG": STUB_CONFIG_PATH})
    assert config.config_path == STUB_CONFIG_PATH
    assert config.region == "eu-west-1"


def test_region_from_environment():
    config = Config(environ={**ACCOUNT_ENVIRON, "AWS_REGION": "eu-north-1"})
    assert config.region == "eu-north-1"


def test_unknown_region_raises():
    with raises(InvalidConfigError):
        Config(environ={**ACCOUNT_ENVIRON, "AWS_REGION": "cp-noexist-1"})


def test_missing_config_file_raises(tmp_path):
    with raises(InvalidConfigError, match="Unable to read"):
        Config(
            config_path=str(tmp_path / "pipeline.yml"),
            environ=ACCOUNT_ENVIRON,
        )


def test_malformed_config_file_raises(tmp_path):
    config_path = tmp_path / "pipeline.yml"
    config_path.write_text("accounts: [tools: \"111\"\n", encoding="utf-8")
    with raises(InvalidConfigError, match="not valid YAML"):
        Config(config_path=str(config_path), environ=ACCOUNT_ENVIRON)


def test_missing_account_id_raises():
    with raises(MissingAccountIdError) as error:
        Config(environ={"TOOLS_ACCOUNT_ID": "111", "UAT_ACCOUNT_ID": "222"})
    assert "PROD_ACCOUNT_ID" in str(error.value)


def test_empty_account_id_raises():
    with raises(MissingAccountIdError):
        Config(environ={**ACCOUNT_ENVIRON, "TOOLS_ACCOUNT_ID": "  "})


def test_missing_account_id_is_invalid_config():
    with raises(InvalidConfigError):
        Config(environ={})


def test_invalid_config_file_raises(cls):
    cls.config_contents["admin-permissions"] = "yes"
    with raises(InvalidConfigError):
        cls._parse_config()


def test_unknown_key_in_config_file_raises(cls):
    cls.config_contents["unknown"] = "value"
    with raises(InvalidConfigError):
        cls._parse_config()


def test_derived_names(cls):
    assert cls.repository_name == "repo-111111111111"
    assert cls.artifact_bucket_name == "artifact-bucket-111111111111"


def test_environments(cls):
    assert cls.environments == [
        DeploymentEnvironment(
            name="uat",
            account_id="222222222222",
            profile="uat-profile",
        ),
        DeploymentEnvironment(
            name="prod",
            account_id="333333333333",
            profile="prod",
        ),
    ]


def test_deployment_environment_stack_names():
    environment = DeploymentEnvironment(
        name="uat",
        account_id="222",
        profile="uat",
    )
    assert environment.stage == "Uat"
    assert environment.application_stack_name == "UatApplicationStack"
    assert environment.deployment_stack_name == "UatApplicationDeploymentStack"
    assert environment.application_stack_name == application_stack_name("uat")


@patch("config.boto3")
def test_session_uses_profile_and_region(boto3_mock, cls):
    cls.pipeline_session()
    boto3_mock.Session.assert_called_once_with(
        profile_name="tools-profile",
        region_name="eu-west-1",
    )
