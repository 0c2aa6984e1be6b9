"""Regions in which Amazon ECS is supported."""

from enum import Enum


class Region(str, Enum):
    """AWS regions supported by the client."""
    US_EAST_1 = "us-east-1"
    US_WEST_1 = "us-west-1"
    US_WEST_2 = "us-west-2"
    EU_WEST_1 = "eu-west-1"
    EU_CENTRAL_1 = "eu-central-1"
    AP_NORTHEAST_1 = "ap-northeast-1"
    AP_SOUTHEAST_1 = "ap-southeast-1"
    AP_SOUTHEAST_2 = "ap-southeast-2"

    def __str__(self) -> str:
        return self.value

    def hostname(self, service: str = "ecs") -> str:
        """Endpoint host for ``service`` in this region, e.g. ecs.us-west-2.amazonaws.com."""
        return f"{service}.{self.value}.amazonaws.com"

    @classmethod
    def from_name(cls, name: str) -> "Region":
        """
        Look up a region by its name (e.g. "us-west-2").

        Raises:
            ValueError: If the region is not supported
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            supported = ", ".join(region.value for region in cls)
            raise ValueError(
                f"Unsupported region: {name!r}. Supported regions: {supported}"
            ) from None
