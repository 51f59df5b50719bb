# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

# pylint: skip-file

from cdk_constructs.build_projects import BuildProjects


def test_synth_build_spec_outputs_application_templates():
    build_spec = BuildProjects.synth_build_spec()
    assert build_spec['phases']['build']['commands'] == [
        'pipeline-synth --outdir dist',
    ]
    assert build_spec['artifacts'] == {
        'base-directory': 'dist',
        'files': ['*ApplicationStack.template.json'],
    }


def test_lambda_build_spec_packages_handler():
    build_spec = BuildProjects.lambda_build_spec()
    assert build_spec['artifacts'] == {
        'base-directory': 'hello_lambda',
        'files': ['index.py'],
    }
