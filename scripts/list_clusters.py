#!/usr/bin/env python3
"""
List Amazon ECS clusters using SigV4-signed requests.

Usage:
    python list_clusters.py --region us-west-2
    python list_clusters.py --region us-west-2 --all --page-size 50
    python list_clusters.py --region us-west-2 --sign-only   # print signed headers, send nothing
    python list_clusters.py --profile my-profile

Authentication:
    Credentials are read from AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY
    unless --profile is given, in which case the boto3 credential chain for
    that profile is used.

    Required IAM permissions:
    - ecs:ListClusters
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ecs_client import (
    ClientConfig,
    CredentialError,
    ECSAction,
    ECSClient,
    ECSClientError,
    ListClustersRequest,
)
from ecs_client.tracing import init_tracing

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    config = ClientConfig.from_env()
    parser = argparse.ArgumentParser(description="List Amazon ECS clusters")
    parser.add_argument("--region", default=config.aws_region, help="AWS region")
    parser.add_argument("--profile", default=config.profile_name or None, help="AWS profile name")
    parser.add_argument("--endpoint-url", default=config.endpoint_url or None, help="Endpoint override")
    parser.add_argument("--page-size", type=int, default=None, help="maxResults per page (1-100)")
    parser.add_argument("--next-token", default=None, help="Continue from a previous page")
    parser.add_argument("--all", action="store_true", help="Follow pagination to the end")
    parser.add_argument("--sign-only", action="store_true", help="Print signed headers without sending")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    args.config = config
    return args


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    if args.config.otel_endpoint or args.config.otel_console_export:
        init_tracing(
            otlp_endpoint=args.config.otel_endpoint or None,
            enable_console_export=args.config.otel_console_export,
        )

    try:
        with ECSClient(
            region=args.region,
            profile_name=args.profile,
            endpoint_url=args.endpoint_url,
            timeout_seconds=args.config.timeout_seconds,
        ) as client:
            if args.sign_only:
                request = ListClustersRequest(max_results=args.page_size, next_token=args.next_token)
                signed = client.prepare_request(ECSAction.LIST_CLUSTERS, request.to_dict())
                for name, value in signed.headers.items():
                    print(f"{name}: {value}")
                print()
                print(signed.body.decode("utf-8"))
                return 0

            if args.all:
                cluster_arns = client.list_all_clusters(page_size=args.page_size)
                next_token = None
            else:
                response = client.list_clusters(
                    ListClustersRequest(max_results=args.page_size, next_token=args.next_token)
                )
                cluster_arns = response.cluster_arns
                next_token = response.next_token
    except CredentialError as e:
        logger.error("Missing AWS credentials: %s", e)
        return 2
    except (ECSClientError, ValueError) as e:
        logger.error("ListClusters failed: %s", e)
        return 1

    if args.json:
        print(json.dumps({"clusterArns": cluster_arns, "nextToken": next_token}, indent=2))
    else:
        for cluster_arn in cluster_arns:
            print(cluster_arn)
        if next_token:
            print(f"\nMore results available. Use --next-token {next_token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
