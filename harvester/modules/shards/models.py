"""
Shard Models.

Pydantic models for the externally supplied shard configuration.
One shard is a (location, category) pair owned by exactly one worker.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

PriceBound = int | tuple[int, int]


class RequestParams(BaseModel):
    """
    Upstream search query parameters.

    Field aliases are the upstream query keys. A price bound is either a fixed
    value or a ``[low, high]`` range randomized per request.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    page: int | None = None
    sort: str | None = None
    category: str | None = None
    currency: str | None = None
    show_on_mobile: str | None = Field(default=None, alias="showOnMobile")
    price_type: str | None = Field(default=None, alias="priceType")
    show_similar: str | None = Field(default=None, alias="showSimilar")
    agents: str | None = None
    page_size: int | None = Field(default=None, alias="pageSize")
    rooms_total: list[str | int] | None = Field(default=None, alias="roomsTotal")
    type: str | None = None
    rent_time: str | None = Field(default=None, alias="rentTime")
    object_type: str | None = Field(default=None, alias="objectType")
    price_min: PriceBound | None = Field(default=None, alias="priceMin")
    price_max: PriceBound | None = Field(default=None, alias="priceMax")
    commercial_type: list[str] | None = Field(default=None, alias="commercialType")

    @field_validator("price_min", "price_max")
    @classmethod
    def check_range(cls, v: PriceBound | None) -> PriceBound | None:
        """Reject inverted ``[low, high]`` ranges."""
        if isinstance(v, tuple) and v[0] > v[1]:
            raise ValueError(f"price range low > high: {list(v)}")
        return v


class CategoryConfig(BaseModel):
    """Category entry of a location in the shard file."""

    id: int
    filter_today_only: bool = False
    sleep_min_ms: int | None = None
    sleep_max_ms: int | None = None
    proxies: list[str] | None = None
    params: RequestParams = Field(default_factory=RequestParams)


class LocationConfig(BaseModel):
    """Location entry of the shard file."""

    id: int
    name: str
    rgid: int
    timezone: str | None = None
    categories: list[CategoryConfig] = Field(default_factory=list)


class ShardFile(BaseModel):
    """Root of the shard file: global request defaults plus locations."""

    request: RequestParams = Field(default_factory=RequestParams)
    locations: list[LocationConfig] = Field(default_factory=list)


class ShardConfig(BaseModel):
    """
    Fully resolved configuration of one shard.

    Immutable for the life of a worker; a respawned worker gets the same instance.
    """

    model_config = ConfigDict(frozen=True)

    location_id: int
    location_name: str
    rgid: int
    category_id: int
    filter_today_only: bool = False
    sleep_min_ms: int | None = None
    sleep_max_ms: int | None = None
    proxies: tuple[str, ...] | None = None
    timezone: str | None = None
    defaults: RequestParams = Field(default_factory=RequestParams)
    params: RequestParams = Field(default_factory=RequestParams)

    @property
    def key(self) -> tuple[int, int]:
        """Shard identity: (location_id, category_id)."""
        return self.location_id, self.category_id

    @property
    def deal_type(self) -> str:
        """Upstream deal type (RENT/SELL) after applying overrides."""
        if "type" in self.params.model_fields_set:
            return self.params.type or "unknown"
        return self.defaults.type or "unknown"

    @property
    def is_commercial(self) -> bool:
        """Whether the shard searches commercial property."""
        if "category" in self.params.model_fields_set:
            return self.params.category == "COMMERCIAL"
        return self.defaults.category == "COMMERCIAL"

    @property
    def name(self) -> str:
        """Human-readable worker name used as log prefix."""
        location = self.location_name.lower().replace(" ", "-")
        return f"realty-{location}-{self.deal_type.lower()}-{self.category_id}"
