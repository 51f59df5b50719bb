# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""The application that is deployed into every downstream account.

The Lambda code location is not known at synth time, it is passed in as
CloudFormation parameters by the pipeline deploy action.
"""

from aws_cdk import (
    aws_apigateway as _apigateway,
    aws_codedeploy as _codedeploy,
    aws_lambda as _lambda,
    Stack,
)
from constructs import Construct


class ApplicationStack(Stack):
    def __init__(self, scope: Construct, id: str, stage_name: str, **kwargs) -> None:  # pylint: disable=W0622
        super().__init__(scope, id, **kwargs)
        self.lambda_code = _lambda.Code.from_cfn_parameters()

        func = _lambda.Function(
            self,
            'Lambda',
            function_name='HelloLambda',
            code=self.lambda_code,
            handler='index.handler',
            runtime=_lambda.Runtime.PYTHON_3_12,
            environment={
                'STAGE_NAME': stage_name,
            },
        )

        _apigateway.LambdaRestApi(
            self,
            'HelloLambdaRestApi',
            handler=func,
            endpoint_export_name='HelloLambdaRestApiEndpoint',
            deploy_options=_apigateway.StageOptions(
                stage_name=stage_name,
            ),
        )

        alias = _lambda.Alias(
            self,
            'LambdaAlias',
            alias_name=stage_name,
            version=func.current_version,
        )

        _codedeploy.LambdaDeploymentGroup(
            self,
            'DeploymentGroup',
            alias=alias,
            deployment_config=_codedeploy.LambdaDeploymentConfig.ALL_AT_ONCE,
        )
