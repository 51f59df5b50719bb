# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Module used for defining the cross-account roles that every downstream
account needs before the pipeline can deploy into it.

The role ARN only depends on the account and the kind of role. It is the
same before and after the artifact key is granted to the role.
"""

import os
from dataclasses import dataclass

from partition import get_partition

DEPLOYMENT_ROLE = "CloudFormationDeploymentRole"
CROSS_ACCOUNT_ROLE = "CodePipelineCrossAccountRole"
ROLE_KINDS = (CROSS_ACCOUNT_ROLE, DEPLOYMENT_ROLE)


def build_role_arn(account_id, role_kind, partition="aws"):
    return f"arn:{partition}:iam::{account_id}:role/{role_kind}"


@dataclass(frozen=True)
class RoleDescriptor:
    environment: object  # config.DeploymentEnvironment
    kind: str

    @property
    def account_id(self):
        return self.environment.account_id

    @property
    def profile(self):
        return self.environment.profile

    @property
    def stack_name(self):
        return self.kind

    def template_path(self, templates_path):
        return os.path.join(templates_path, f"{self.kind}.yml")

    def role_arn(self, region):
        return build_role_arn(
            self.account_id,
            self.kind,
            get_partition(region),
        )

    def parameters(self, tools_account_id, key_arn=None):
        """
        CloudFormation parameters for the role stack. The KeyArn parameter
        is left out until the artifact key exists.
        """
        params = [{
            'ParameterKey': 'ToolsAccountID',
            'ParameterValue': tools_account_id,
        }, {
            'ParameterKey': 'Stage',
            'ParameterValue': self.environment.stage,
        }]
        if key_arn:
            params.append({
                'ParameterKey': 'KeyArn',
                'ParameterValue': key_arn,
            })
        return params

    def __str__(self):
        return f"{self.kind} in {self.account_id} ({self.environment.stage})"


def role_descriptors(config):
    """
    The cross-account and deployment role of every downstream account
    """
    return [
        RoleDescriptor(environment=environment, kind=kind)
        for environment in config.environments
        for kind in ROLE_KINDS
    ]
