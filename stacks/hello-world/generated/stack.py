"""Compiled stack definition (build artifact of the hello-world program)."""


def stack():
    return {"bucketName": "my-bucket", "region": "us-east-1"}
