# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

# pylint: skip-file

import json
import sys

from mock import Mock, patch
from pytest import fixture, raises

import endpoints
from config import Config, DeploymentEnvironment
from endpoints import fetch_endpoints
from errors import StackDeploymentError

ACCOUNT_ENVIRON = {
    "TOOLS_ACCOUNT_ID": "111",
    "UAT_ACCOUNT_ID": "222",
    "PROD_ACCOUNT_ID": "333",
}
UAT_URL = "https://uat.execute-api.us-west-2.amazonaws.com/uat/"
PROD_URL = "https://prod.execute-api.us-west-2.amazonaws.com/prod/"


@fixture
def config():
    with patch("config.boto3"):
        yield Config(environ=ACCOUNT_ENVIRON)


def _outputs_by_stack(outputs):
    def _cloudformation(**kwargs):
        cloudformation = Mock()
        cloudformation.get_stack_outputs.return_value = outputs.get(
            kwargs["stack_name"], {},
        )
        return cloudformation
    return _cloudformation


@patch("endpoints.CloudFormation")
def test_fetch_endpoints(cfn_cls, config):
    cfn_cls.side_effect = _outputs_by_stack({
        "UatApplicationDeploymentStack": {
            "HelloLambdaRestApiEndpointA1B2C3D4": UAT_URL,
        },
        "ProdApplicationDeploymentStack": {
            "HelloLambdaRestApiEndpointA1B2C3D4": PROD_URL,
            "Other": "value",
        },
    })
    assert fetch_endpoints(config) == {"uat": UAT_URL, "prod": PROD_URL}


@patch("endpoints.CloudFormation")
def test_fetch_endpoints_skips_stages_not_deployed(cfn_cls, config):
    cfn_cls.side_effect = _outputs_by_stack({
        "UatApplicationDeploymentStack": {
            "HelloLambdaRestApiEndpointA1B2C3D4": UAT_URL,
        },
    })
    assert fetch_endpoints(config) == {"uat": UAT_URL}


@patch("endpoints.fetch_endpoints")
@patch("endpoints.Config")
def test_main_prints_json(config_cls, fetch_mock, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["pipeline-endpoints", "--json"])
    fetch_mock.return_value = {"uat": UAT_URL}
    endpoints.main()
    assert json.loads(capsys.readouterr().out) == {"uat": UAT_URL}


@patch("endpoints.fetch_endpoints")
@patch("endpoints.Config")
def test_main_without_endpoints(config_cls, fetch_mock, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["pipeline-endpoints"])
    fetch_mock.return_value = {}
    with raises(SystemExit) as error:
        endpoints.main()
    assert error.value.code == 2


@patch("endpoints.Config")
def test_main_reports_lookup_errors(config_cls, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["pipeline-endpoints"])
    with patch("endpoints.CloudFormation") as cfn_cls:
        cfn_cls.return_value.get_stack_outputs.side_effect = StackDeploymentError(
            "UatApplicationDeploymentStack: unable to describe the stack",
        )
        config_cls.return_value.environments = [
            DeploymentEnvironment(name="uat", account_id="222", profile="uat"),
        ]
        with raises(SystemExit) as error:
            endpoints.main()
    assert error.value.code == 1


def test_main_reports_unreadable_config(monkeypatch, tmp_path):
    monkeypatch.setattr(
        sys,
        "argv",
        ["pipeline-endpoints", "--config", str(tmp_path / "pipeline.yml")],
    )
    with raises(SystemExit) as error:
        endpoints.main()
    assert error.value.code == 1
