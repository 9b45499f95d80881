from pydantic import BaseModel, Field


# --- User requests ---

class NewUser(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class NewUserRequest(BaseModel):
    user: NewUser


class LoginUser(BaseModel):
    email: str
    password: str


class LoginRequest(BaseModel):
    user: LoginUser


class UserUpdate(BaseModel):
    """
    Partial profile mutation.  Omitted (or null) fields are left alone;
    an explicit empty string is a value and is applied, except for
    username, which must be non-empty as at registration.
    """

    email: str | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = None
    bio: str | None = None
    image: str | None = Field(None, max_length=500)

    def provided(self) -> dict[str, str]:
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class UserUpdateRequest(BaseModel):
    user: UserUpdate = Field(default_factory=UserUpdate)


# --- Responses ---

class UserResponse(BaseModel):
    email: str
    token: str
    username: str
    bio: str
    image: str


class UserEnvelope(BaseModel):
    user: UserResponse


class ProfileResponse(BaseModel):
    username: str
    bio: str
    image: str
    following: bool


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse


class ArticleEnvelope(BaseModel):
    article: dict
