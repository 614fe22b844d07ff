"""
Routing Policy Records
======================

Pydantic records for the organization documents owned by the external
org-management store. The routing engine only ever reads them.

Stored documents may use the legacy names ``use_prompt_calification_model`` and
``prompt_calification_model_categories``; both are accepted as aliases so
existing documents load unchanged.
"""

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AccessTokenScope(str, Enum):
    """Capabilities an organization access token can carry"""

    ADMIN = "admin"
    MANAGE_MODELS = "manage_models"
    MANAGE_ROUTERS = "manage_routers"
    MANAGE_MEMBERS = "manage_members"
    ACCESS_PROMPT_MODEL_SUGGESTION = "access_prompt_model_suggestion"
    ACCESS_CACHING_SERVICE = "access_caching_service"

    def __str__(self) -> str:
        return self.value


class ModelType(str, Enum):
    LEGACY = "legacy"
    CUSTOM = "custom"


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"


class NoMatchPolicy(str, Enum):
    """What a sentence-matching router does when its last cosine candidate misses"""

    RETURN_BEST_EFFORT = "return_best_effort"  # last candidate, appropriate_match=False
    ERROR = "error"


class ModelObject(BaseModel):
    """A tenant-registered reference to a downstream language model"""

    id: str = Field(..., min_length=1)
    type: ModelType = ModelType.CUSTOM
    display_name: str = ""
    description: str = ""
    registered_by: str = ""

    model_config = ConfigDict(extra='allow', frozen=True, protected_namespaces=())


class Category(BaseModel):
    """Maps a zero-shot classification label to a model"""

    label: str
    description: str = ""
    model_id: str

    model_config = ConfigDict(extra='allow', frozen=True, protected_namespaces=())


class Sentence(BaseModel):
    """Maps reference text (exact or embedding similarity) to a model"""

    text: str
    exact: bool = False
    use_cosine_similarity: bool = False
    cosine_similarity_temperature: float = 0.5
    model_id: str

    model_config = ConfigDict(extra='allow', frozen=True, protected_namespaces=())

    @property
    def has_match_method(self) -> bool:
        return self.exact or self.use_cosine_similarity


class Router(BaseModel):
    """A tenant-configured policy mapping prompts to models"""

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""

    active: bool = True
    deleted: bool = False

    max_prompt_length: int = Field(2048, ge=0)

    use_single_model: bool = False
    model_id: str | None = None

    use_prompt_classification: bool = Field(
        False,
        validation_alias=AliasChoices("use_prompt_classification", "use_prompt_calification_model"),
    )
    categories: list[Category] = Field(
        default_factory=list,
        validation_alias=AliasChoices("categories", "prompt_calification_model_categories"),
    )

    use_sentence_matching: bool = False
    sentences: list[Sentence] = Field(default_factory=list)
    on_no_match: NoMatchPolicy = NoMatchPolicy.RETURN_BEST_EFFORT

    model_config = ConfigDict(extra='allow', populate_by_name=True, protected_namespaces=())

    @property
    def usable(self) -> bool:
        return self.active and not self.deleted

    def find_category(self, label: str) -> Category | None:
        """First category carrying ``label`` (labels are not unique in storage)"""
        for category in self.categories:
            if category.label == label:
                return category
        return None

    def referenced_model_ids(self) -> list[str]:
        """Every model id this router points at, in policy order"""
        ids: list[str] = []
        if self.model_id:
            ids.append(self.model_id)
        ids.extend(c.model_id for c in self.categories)
        ids.extend(s.model_id for s in self.sentences)
        return ids


class OrgMember(BaseModel):
    id: str
    role: MemberRole = MemberRole.MEMBER


class AccessToken(BaseModel):
    """Organization-issued credential carrying capability scopes"""

    token: str
    created_by: str = ""
    created_at: str = ""
    scopes: list[AccessTokenScope] = Field(default_factory=list)

    model_config = ConfigDict(extra='allow')


class Organization(BaseModel):
    """Tenant workspace owning routers, models and access records"""

    id: str = Field(..., min_length=1)
    name: str = ""
    models: list[ModelObject] = Field(default_factory=list)
    routers: list[Router] = Field(default_factory=list)
    members: list[OrgMember] = Field(default_factory=list)
    access_tokens: list[AccessToken] = Field(default_factory=list)
    deleted: bool = False

    model_config = ConfigDict(extra='allow')

    def find_router(self, router_id: str) -> Router | None:
        return next((r for r in self.routers if r.id == router_id), None)

    def find_model(self, model_id: str | None) -> ModelObject | None:
        if model_id is None:
            return None
        return next((m for m in self.models if m.id == model_id), None)

    def dangling_model_references(self) -> dict[str, list[str]]:
        """Map router id -> model ids it references that are not registered"""
        known = {m.id for m in self.models}
        dangling: dict[str, list[str]] = {}
        for router in self.routers:
            missing = [m for m in router.referenced_model_ids() if m not in known]
            if missing:
                dangling[router.id] = missing
        return dangling
