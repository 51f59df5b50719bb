# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""Construct related to the CodeBuild projects of the Build stage
"""

from aws_cdk import (
    aws_codebuild as _codebuild,
    aws_kms as _kms,
)
from constructs import Construct

DEFAULT_BUILD_IMAGE = _codebuild.LinuxBuildImage.STANDARD_7_0
APPLICATION_SOURCE_DIRECTORY = "hello_lambda"
SYNTH_OUTPUT_DIRECTORY = "dist"


class BuildProjects(Construct):
    def __init__(
        self,
        scope: Construct,
        id: str,  # pylint: disable=W0622
        encryption_key: _kms.IKey,
        **kwargs,
    ):
        super().__init__(scope, id, **kwargs)
        environment = _codebuild.BuildEnvironment(
            build_image=DEFAULT_BUILD_IMAGE,
        )
        # Synthesizes the application templates of every stage
        self.cdk_build = _codebuild.PipelineProject(
            self,
            'CdkBuild',
            build_spec=_codebuild.BuildSpec.from_object(
                BuildProjects.synth_build_spec()
            ),
            environment=environment,
            # use the encryption key for build artifacts
            encryption_key=encryption_key,
        )
        # Packages the Lambda function code
        self.lambda_build = _codebuild.PipelineProject(
            self,
            'LambdaBuild',
            build_spec=_codebuild.BuildSpec.from_object(
                BuildProjects.lambda_build_spec()
            ),
            environment=environment,
            encryption_key=encryption_key,
        )

    @staticmethod
    def synth_build_spec():
        return {
            "version": "0.2",
            "phases": {
                "install": {
                    "commands": [
                        "pip install .",
                    ],
                },
                "build": {
                    "commands": [
                        f"pipeline-synth --outdir {SYNTH_OUTPUT_DIRECTORY}",
                    ],
                },
            },
            "artifacts": {
                "base-directory": SYNTH_OUTPUT_DIRECTORY,
                "files": [
                    "*ApplicationStack.template.json",
                ],
            },
        }

    @staticmethod
    def lambda_build_spec():
        return {
            "version": "0.2",
            "phases": {
                "install": {
                    "commands": [
                        f"cd {APPLICATION_SOURCE_DIRECTORY}",
                    ],
                },
                "build": {
                    "commands": [
                        "python -m py_compile index.py",
                    ],
                },
            },
            "artifacts": {
                "base-directory": APPLICATION_SOURCE_DIRECTORY,
                "files": [
                    "index.py",
                ],
            },
        }
