"""
Request and response types for Amazon ECS API actions.

Each request serializes to the JSON body of the HTTP request; each response is
parsed from the JSON body the service returns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

# X-Amz-Target prefix of every Amazon ECS API action
ECS_TARGET_PREFIX = "AmazonEC2ContainerServiceV20141113"


class ECSAction(str, Enum):
    """Actions the client can perform."""
    LIST_CLUSTERS = "ListClusters"

    def __str__(self) -> str:
        return self.value

    @property
    def target(self) -> str:
        """Value of the X-Amz-Target header for this action."""
        return f"{ECS_TARGET_PREFIX}.{self.value}"


@dataclass
class ListClustersRequest:
    """
    Parameters of a ListClusters call.

    Attributes:
        max_results: Max number of cluster results returned in paginated output.
            Must be between 1 and 100, inclusive. The service defaults to 100.
        next_token: Value returned from a previous paginated request;
            pagination continues from the end of those results.
    """
    max_results: Optional[int] = None
    next_token: Optional[str] = None

    def __post_init__(self):
        if self.max_results is not None and not 1 <= self.max_results <= 100:
            raise ValueError(
                f"max_results must be between 1 and 100, got {self.max_results}"
            )

    def to_dict(self) -> dict[str, Any]:
        """JSON body of the request; unset fields are omitted."""
        body: dict[str, Any] = {}
        if self.max_results is not None:
            body["maxResults"] = self.max_results
        if self.next_token is not None:
            body["nextToken"] = self.next_token
        return body


@dataclass
class ListClustersResponse:
    """
    Result of a ListClusters call.

    Attributes:
        cluster_arns: Full ARN of each cluster associated with the account
        next_token: Token for the next page, None when there are no more results
    """
    cluster_arns: list[str] = field(default_factory=list)
    next_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListClustersResponse":
        return cls(
            cluster_arns=list(data.get("clusterArns") or []),
            next_token=data.get("nextToken"),
        )
