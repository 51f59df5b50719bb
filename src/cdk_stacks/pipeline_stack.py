# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""This is the stack of the cross-account release pipeline, including the
encrypted artifact channel it shares with the downstream accounts.
"""

from aws_cdk import (
    aws_codecommit as _codecommit,
    aws_codepipeline as _codepipeline,
    aws_codepipeline_actions as _codepipeline_actions,
    aws_iam as _iam,
    CfnCapabilities,
    CfnOutput,
    Stack,
)
from constructs import Construct

from cdk_constructs.artifact_channel import ArtifactChannel
from cdk_constructs.build_projects import BuildProjects
from config import PIPELINE_NAME
from logger import configure_logger
from partition import get_partition
from roles import CROSS_ACCOUNT_ROLE, DEPLOYMENT_ROLE, role_descriptors

LOGGER = configure_logger(__name__)
KEY_ARN_OUTPUT = "ArtifactBucketEncryptionKeyArn"
KEY_ARN_EXPORT = "ArtifactBucketEncryptionKey"


class PipelineStack(Stack):
    def __init__(
        self,
        scope: Construct,
        id: str,  # pylint: disable=W0622
        config,
        application_stacks: dict,
        **kwargs,
    ) -> None:
        super().__init__(scope, id, **kwargs)
        LOGGER.info('Pipeline creation/update of %s commenced', id)
        self.config = config
        self.arn_partition = get_partition(config.region)

        repository = _codecommit.Repository.from_repository_name(
            self,
            'CodeCommitRepo',
            config.repository_name,
        )

        # Resolve the cross-account roles of every downstream account, these
        # exist already, so they are referenced by ARN
        self.roles = {}
        for descriptor in role_descriptors(config):
            self.roles[(descriptor.environment.name, descriptor.kind)] = (
                _iam.Role.from_role_arn(
                    self,
                    f'{descriptor.environment.stage}{descriptor.kind}',
                    descriptor.role_arn(config.region),
                    mutable=False,
                )
            )

        self.channel = ArtifactChannel(
            self,
            'ArtifactChannel',
            bucket_name=config.artifact_bucket_name,
            downstream_account_ids=[
                environment.account_id
                for environment in config.environments
            ],
            cross_account_roles=[
                self.roles[(environment.name, CROSS_ACCOUNT_ROLE)]
                for environment in config.environments
            ],
        )
        builds = BuildProjects(
            self,
            'BuildProjects',
            encryption_key=self.channel.key,
        )

        source_output = _codepipeline.Artifact()
        cdk_build_output = _codepipeline.Artifact('CdkBuildOutput')
        lambda_build_output = _codepipeline.Artifact('LambdaBuildOutput')

        stages = [
            _codepipeline.StageProps(
                stage_name='Source',
                actions=[
                    _codepipeline_actions.CodeCommitSourceAction(
                        action_name='CodeCommit_Source',
                        repository=repository,
                        output=source_output,
                        branch=config.branch,
                    ),
                ],
            ),
            _codepipeline.StageProps(
                stage_name='Build',
                actions=[
                    _codepipeline_actions.CodeBuildAction(
                        action_name='Application_Build',
                        project=builds.lambda_build,
                        input=source_output,
                        outputs=[lambda_build_output],
                    ),
                    _codepipeline_actions.CodeBuildAction(
                        action_name='CDK_Synth',
                        project=builds.cdk_build,
                        input=source_output,
                        outputs=[cdk_build_output],
                    ),
                ],
            ),
        ]
        stages.extend(
            self._generate_deploy_stage(
                environment,
                application_stacks[environment.name],
                cdk_build_output,
                lambda_build_output,
            )
            for environment in config.environments
        )

        self.pipeline = _codepipeline.Pipeline(
            self,
            'Pipeline',
            pipeline_name=PIPELINE_NAME,
            artifact_bucket=self.channel.bucket,
            stages=stages,
        )

        # Add the target accounts to the pipeline policy
        self.pipeline.add_to_role_policy(
            _iam.PolicyStatement(
                actions=['sts:AssumeRole'],
                resources=[
                    f'arn:{self.arn_partition}:iam::{environment.account_id}:role/*'
                    for environment in config.environments
                ],
            )
        )

        # Publish the KMS Key ARN as an output
        CfnOutput(
            self,
            KEY_ARN_OUTPUT,
            value=self.channel.key.key_arn,
            export_name=KEY_ARN_EXPORT,
        )

    def _generate_deploy_stage(
        self,
        environment,
        application_stack,
        cdk_build_output,
        lambda_build_output,
    ):
        lambda_location = lambda_build_output.s3_location
        return _codepipeline.StageProps(
            stage_name=f'Deploy_{environment.stage}',
            actions=[
                _codepipeline_actions.CloudFormationCreateUpdateStackAction(
                    action_name='Deploy',
                    template_path=cdk_build_output.at_path(
                        f'{environment.application_stack_name}.template.json'
                    ),
                    stack_name=environment.deployment_stack_name,
                    admin_permissions=self.config.admin_permissions,
                    parameter_overrides={
                        **application_stack.lambda_code.assign(
                            bucket_name=lambda_location.bucket_name,
                            object_key=lambda_location.object_key,
                        ),
                    },
                    extra_inputs=[lambda_build_output],
                    cfn_capabilities=[CfnCapabilities.ANONYMOUS_IAM],
                    role=self.roles[(environment.name, CROSS_ACCOUNT_ROLE)],
                    deployment_role=self.roles[(environment.name, DEPLOYMENT_ROLE)],
                ),
            ],
        )
