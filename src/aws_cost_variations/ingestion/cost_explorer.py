"""Fetch cost data from the AWS Cost Explorer API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterator

from botocore.exceptions import ClientError, NoCredentialsError

from aws_cost_variations.report.models import (
    Account,
    DataSourceError,
    DateRange,
    RawCostDiff,
    ReportContext,
)
from aws_cost_variations.utils.aws import aws_session
from aws_cost_variations.utils.dates import format_cost_diff_timestamp


class CostExplorerError(DataSourceError):
    """Raised for Cost Explorer API failures."""

    pass


@dataclass
class CostExplorerRow:
    """One day+service+account aggregation from Cost Explorer."""

    usage_date: date
    usage_account_id: str
    product_code: str
    total_unblended_cost: float
    total_blended_cost: float


# Map common Cost Explorer service names to CUR product_code values.
# Unknown services pass through as-is.
CE_SERVICE_TO_PRODUCT_CODE: dict[str, str] = {
    "Amazon Elastic Compute Cloud - Compute": "AmazonEC2",
    "Amazon Simple Storage Service": "AmazonS3",
    "Amazon Relational Database Service": "AmazonRDS",
    "Amazon DynamoDB": "AmazonDynamoDB",
    "AWS Lambda": "AWSLambda",
    "Amazon CloudFront": "AmazonCloudFront",
    "Amazon Elastic Container Service": "AmazonECS",
    "Amazon Elastic Kubernetes Service": "AmazonEKS",
    "Amazon ElastiCache": "AmazonElastiCache",
    "Amazon Redshift": "AmazonRedshift",
    "Amazon Kinesis": "AmazonKinesis",
    "Amazon SageMaker": "AmazonSageMaker",
    "Amazon Simple Notification Service": "AmazonSNS",
    "Amazon Simple Queue Service": "AmazonSQS",
    "AWS Key Management Service": "awskms",
    "Amazon Route 53": "AmazonRoute53",
    "Amazon API Gateway": "AmazonApiGateway",
    "AWS CloudTrail": "AWSCloudTrail",
    "Amazon CloudWatch": "AmazonCloudWatch",
    "AWS Config": "AWSConfig",
    "AWS Secrets Manager": "AWSSecretsManager",
    "Amazon Elastic File System": "AmazonEFS",
    "Amazon Elastic Block Store": "AmazonEBS",
    "AWS Step Functions": "AWSStepFunctions",
    "Amazon Athena": "AmazonAthena",
    "AWS Glue": "AWSGlue",
    "Amazon OpenSearch Service": "AmazonES",
    "Amazon GuardDuty": "AmazonGuardDuty",
    "AWS CodeBuild": "AWSCodeBuild",
    "Amazon Bedrock": "AmazonBedrock",
    "Tax": "Tax",
}

CE_GRANULARITY = {
    "day": "DAILY",
    "month": "MONTHLY",
}

_NO_CREDENTIALS = (
    "AWS credentials not found. Configure credentials to use "
    "Cost Explorer (e.g. AWS_PROFILE, IAM role, or env vars)."
)


def _map_service_name(ce_service: str) -> str:
    """Map a Cost Explorer service display name to a CUR product_code."""
    return CE_SERVICE_TO_PRODUCT_CODE.get(ce_service, ce_service)


def _make_client(region: str, profile: str = ""):
    try:
        return aws_session(profile).client("ce", region_name=region)
    except NoCredentialsError as e:
        raise CostExplorerError(_NO_CREDENTIALS) from e


def _iter_pages(
    client,
    request: dict,
    on_page: Callable[[int], None] | None = None,
) -> Iterator[dict]:
    """Yield every get_cost_and_usage page, following NextPageToken."""
    page_num = 0
    next_token: str | None = None
    try:
        while True:
            kwargs = dict(request)
            if next_token:
                kwargs["NextPageToken"] = next_token

            response = client.get_cost_and_usage(**kwargs)
            page_num += 1
            yield response

            if on_page:
                on_page(page_num)

            next_token = response.get("NextPageToken")
            if not next_token:
                break
    except NoCredentialsError as e:
        raise CostExplorerError(_NO_CREDENTIALS) from e
    except ClientError as e:
        raise CostExplorerError(f"Cost Explorer API error: {e}") from e


def fetch_cost_explorer_data(
    start_date: str,
    end_date: str,
    region: str = "us-east-1",
    on_page: Callable[[int, int], None] | None = None,
    profile: str = "",
) -> list[CostExplorerRow]:
    """Fetch daily cost data from Cost Explorer grouped by SERVICE and LINKED_ACCOUNT.

    Args:
        start_date: Start date YYYY-MM-DD (inclusive).
        end_date: End date YYYY-MM-DD (exclusive).
        region: AWS region for the CE API endpoint.
        on_page: Optional callback(page_num, rows_so_far) for progress.
        profile: Optional named AWS profile.

    Returns:
        List of CostExplorerRow, one per day+service+account combination.
        Zero-cost entries (|cost| < 0.001) are filtered out.

    Raises:
        CostExplorerError: On API or credential failures.
    """
    client = _make_client(region, profile)
    rows: list[CostExplorerRow] = []
    request = {
        "TimePeriod": {"Start": start_date, "End": end_date},
        "Granularity": "DAILY",
        "Metrics": ["UnblendedCost", "BlendedCost"],
        "GroupBy": [
            {"Type": "DIMENSION", "Key": "SERVICE"},
            {"Type": "DIMENSION", "Key": "LINKED_ACCOUNT"},
        ],
    }

    def page_done(page_num: int) -> None:
        if on_page:
            on_page(page_num, len(rows))

    for response in _iter_pages(client, request, page_done):
        for period in response.get("ResultsByTime", []):
            usage_date = date.fromisoformat(period["TimePeriod"]["Start"])
            for group in period.get("Groups", []):
                keys = group["Keys"]
                service_name = keys[0] if len(keys) > 0 else "Unknown"
                account_id = keys[1] if len(keys) > 1 else ""

                unblended = float(group["Metrics"]["UnblendedCost"]["Amount"])
                blended = float(group["Metrics"]["BlendedCost"]["Amount"])

                # Filter zero-cost entries
                if abs(unblended) < 0.001 and abs(blended) < 0.001:
                    continue

                rows.append(
                    CostExplorerRow(
                        usage_date=usage_date,
                        usage_account_id=account_id,
                        product_code=_map_service_name(service_name),
                        total_unblended_cost=unblended,
                        total_blended_cost=blended,
                    )
                )

    return rows


class CostExplorerDiffSource:
    """Cost-diff source querying Cost Explorer live, one account at a time."""

    def __init__(self, region: str = "us-east-1", profile: str = ""):
        self.client = _make_client(region, profile)

    def fetch(
        self,
        context: ReportContext,
        account: Account,
        date_range: DateRange,
        granularity: str,
    ) -> RawCostDiff:
        """Unblended cost per service for one linked account.

        Returns product -> [{"date": ..., "cost": ...}] with one entry per
        Cost Explorer time period.
        """
        if granularity not in CE_GRANULARITY:
            raise CostExplorerError(
                f"Unsupported granularity '{granularity}'"
            )
        if context.cancelled.is_set():
            raise CostExplorerError(
                f"Report cancelled before fetching account {account.id}"
            )

        # Cost Explorer end dates are exclusive.
        end = date_range.end.date() + timedelta(days=1)
        request = {
            "TimePeriod": {
                "Start": date_range.start.date().isoformat(),
                "End": end.isoformat(),
            },
            "Granularity": CE_GRANULARITY[granularity],
            "Metrics": ["UnblendedCost"],
            "Filter": {
                "Dimensions": {
                    "Key": "LINKED_ACCOUNT",
                    "Values": [account.id],
                }
            },
            "GroupBy": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        }

        result: RawCostDiff = {}
        for response in _iter_pages(self.client, request):
            for period in response.get("ResultsByTime", []):
                bucket = format_cost_diff_timestamp(
                    date.fromisoformat(period["TimePeriod"]["Start"])
                )
                for group in period.get("Groups", []):
                    keys = group["Keys"]
                    product = _map_service_name(keys[0] if keys else "Unknown")
                    cost = float(group["Metrics"]["UnblendedCost"]["Amount"])
                    result.setdefault(product, []).append(
                        {"date": bucket, "cost": cost}
                    )
        return result
