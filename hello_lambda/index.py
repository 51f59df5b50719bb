# Copyright Amazon.com Inc. or its affiliates.
# SPDX-License-Identifier: MIT-0

"""
Hello handler deployed to every stage of the pipeline
"""

import json
import os


def handler(event, _context):
    stage_name = os.environ.get("STAGE_NAME", "unknown")
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({
            "message": f"Hello from the {stage_name} stage",
            "path": (event or {}).get("path", "/"),
        }),
    }
