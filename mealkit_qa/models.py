"""Value types shared by the API commands, workflows and scenario tests."""
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from mealkit_qa.config import SuiteConfig

USER_STATUSES = ("active", "inactive")
USER_GENDERS = ("male", "female")

FIRST_NAMES = ["John", "Jane", "Bob", "Alice", "Charlie", "Diana", "Eve", "Frank"]
LAST_NAMES = ["Smith", "Johnson", "Brown", "Davis", "Wilson", "Moore", "Taylor", "Anderson"]


@dataclass(frozen=True)
class ApiResponse:
    """Raw response handed back to the caller for assertions."""

    status: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def data(self) -> Any:
        """The ``data`` member of a ``{data, meta}`` envelope, if any."""
        if isinstance(self.body, dict):
            return self.body.get("data")
        return None

    @property
    def meta(self) -> Any:
        if isinstance(self.body, dict):
            return self.body.get("meta")
        return None


@dataclass
class User:
    """A GoRest user record."""

    id: int
    name: str
    email: str
    gender: str
    status: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            gender=data.get("gender", ""),
            status=data.get("status", ""),
        )

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class RegistrationData:
    """Signup funnel inputs, fixed for the duration of one scenario."""

    email: str | None
    first_name: str
    last_name: str
    password: str
    zip_code: str
    meal_plan_count: int = 6

    @classmethod
    def from_config(cls, config: SuiteConfig) -> RegistrationData:
        return cls(
            email=config.test_email,
            first_name=config.test_first_name,
            last_name=config.test_last_name,
            password=config.test_password,
            zip_code=config.test_zip_code,
            meal_plan_count=config.test_meal_plan_count,
        )


def generate_random_name(rng: random.Random | None = None) -> str:
    rng = rng or random
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def generate_signup_email() -> str:
    """Time-based address so repeated runs never collide."""
    return f"qa.mail{int(time.time() * 1000)}@gmail.com"
