"""In-memory fakes and payload builders shared by the test suite."""

import io
import json
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError


class InMemoryS3:
    """Minimal stand-in for a boto3 S3 client backed by a dict.

    Listing is paginated with a small page size so that multi-page walks
    are exercised. Every mutating call is appended to ``calls``, which may
    be shared with other fakes to assert cross-system ordering.
    """

    def __init__(
        self,
        objects: Optional[Dict[str, bytes]] = None,
        page_size: int = 2,
        calls: Optional[List[tuple]] = None,
    ):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.page_size = page_size
        self.calls = calls if calls is not None else []
        self.fail_list = False
        self.fail_delete_keys: set = set()

    def get_paginator(self, name: str):
        assert name == "list_objects_v2"
        return self

    def paginate(self, Bucket: str):
        if self.fail_list:
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "ListObjectsV2",
            )
        keys = list(self.objects)
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), self.page_size):
            yield {
                "Contents": [
                    {"Key": key, "Size": len(self.objects[key])}
                    for key in keys[start:start + self.page_size]
                ]
            }

    def get_object(self, Bucket: str, Key: str):
        if Key not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket: str, Key: str):
        self.calls.append(("delete_object", Key))
        if Key in self.fail_delete_keys:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "We encountered an internal error."}},
                "DeleteObject",
            )
        self.objects.pop(Key, None)
        return {}


def operation_json(
    repo: str,
    operation_id: str,
    tenant_id: str = "t1",
    subscription_id: str = "s1",
    metadata: Optional[Dict[str, Any]] = None,
) -> bytes:
    """Serialize an operation record the way the provisioning front end does."""
    return json.dumps({
        "operationId": operation_id,
        "repoName": repo,
        "tenantId": tenant_id,
        "subscriptionId": subscription_id,
        "metadata": metadata or {},
    }).encode("utf-8")


def run_json(
    run_id: int,
    branch: Optional[str],
    conclusion: Optional[str] = "success",
    status: str = "completed",
) -> Dict[str, Any]:
    """A workflow run as returned by the GitHub API."""
    return {
        "id": run_id,
        "name": "configure-subscription",
        "head_branch": branch,
        "status": status,
        "conclusion": conclusion,
        "run_number": run_id,
        "html_url": f"https://github.com/contoso/repo/actions/runs/{run_id}",
    }

