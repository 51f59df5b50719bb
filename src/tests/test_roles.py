# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

# pylint: skip-file

import os

from pytest import fixture

from config import DeploymentEnvironment
from roles import (
    CROSS_ACCOUNT_ROLE,
    DEPLOYMENT_ROLE,
    RoleDescriptor,
    build_role_arn,
    role_descriptors,
)


class StubConfig:
    environments = [
        DeploymentEnvironment(name="uat", account_id="222", profile="uat"),
        DeploymentEnvironment(name="prod", account_id="333", profile="prod"),
    ]


@fixture
def cls():
    return RoleDescriptor(
        environment=StubConfig.environments[0],
        kind=CROSS_ACCOUNT_ROLE,
    )


def test_build_role_arn():
    assert build_role_arn("222", DEPLOYMENT_ROLE) == (
        "arn:aws:iam::222:role/CloudFormationDeploymentRole"
    )
    assert build_role_arn("222", DEPLOYMENT_ROLE, "aws-cn") == (
        "arn:aws-cn:iam::222:role/CloudFormationDeploymentRole"
    )


def test_role_arn_resolves_partition(cls):
    assert cls.role_arn("us-west-2") == (
        "arn:aws:iam::222:role/CodePipelineCrossAccountRole"
    )
    assert cls.role_arn("cn-north-1") == (
        "arn:aws-cn:iam::222:role/CodePipelineCrossAccountRole"
    )


def test_stack_name_equals_role_kind(cls):
    assert cls.stack_name == "CodePipelineCrossAccountRole"


def test_template_path(cls):
    assert cls.template_path("templates") == os.path.join(
        "templates",
        "CodePipelineCrossAccountRole.yml",
    )


def test_parameters_without_key(cls):
    assert cls.parameters("111") == [
        {"ParameterKey": "ToolsAccountID", "ParameterValue": "111"},
        {"ParameterKey": "Stage", "ParameterValue": "Uat"},
    ]


def test_parameters_with_key(cls):
    assert cls.parameters("111", "arn:aws:kms:us-west-2:111:key/abc") == [
        {"ParameterKey": "ToolsAccountID", "ParameterValue": "111"},
        {"ParameterKey": "Stage", "ParameterValue": "Uat"},
        {
            "ParameterKey": "KeyArn",
            "ParameterValue": "arn:aws:kms:us-west-2:111:key/abc",
        },
    ]


def test_role_arn_does_not_depend_on_key(cls):
    before = cls.role_arn("us-west-2")
    cls.parameters("111", "arn:aws:kms:us-west-2:111:key/abc")
    assert cls.role_arn("us-west-2") == before


def test_role_descriptors():
    descriptors = role_descriptors(StubConfig())
    assert [
        (descriptor.account_id, descriptor.kind, descriptor.profile)
        for descriptor in descriptors
    ] == [
        ("222", CROSS_ACCOUNT_ROLE, "uat"),
        ("222", DEPLOYMENT_ROLE, "uat"),
        ("333", CROSS_ACCOUNT_ROLE, "prod"),
        ("333", DEPLOYMENT_ROLE, "prod"),
    ]


def test_role_descriptor_str(cls):
    assert str(cls) == "CodePipelineCrossAccountRole in 222 (Uat)"
