"""boto3 session helper shared by the Cost Explorer fetchers."""

from __future__ import annotations

import boto3


def aws_session(profile: str = "") -> boto3.Session:
    """Return a boto3 Session for *profile*, or the default credential chain.

    A missing profile raises ``botocore.exceptions.ProfileNotFound`` here;
    bad or absent credentials only surface on the first API call.
    """
    if profile:
        return boto3.Session(profile_name=profile)
    return boto3.Session()
