import textwrap

import pytest

SAMPLE_API = textwrap.dedent(
    '''
    from dataclasses import dataclass
    from typing import Annotated, Optional


    @dataclass
    class ProfileParams:
        login: Annotated[str, "required"]


    @dataclass
    class CreateParams:
        login: Annotated[str, "required,min=10"]
        name: str
        status: Annotated[str, "enum=user|moderator|admin"]
        age: Annotated[int, "min=0,max=128"]


    @dataclass
    class OtherCreateParams:
        username: Annotated[str, "required,min=3"]
        rank: Annotated[str, "enum=warrior|sorcerer|rouge"]
        level: Annotated[int, "min=1,max=50"]
        nickname: Annotated[Optional[str], "min=100"] = None


    @dataclass
    class StatsParams:
        period: str = "day"


    @dataclass
    class User:
        id: int
        login: str
        name: str
        status: str
        age: int


    class MyApi:
        def __init__(self):
            self.users = {}

        def profile(self, ctx, params: ProfileParams) -> User:
            """apigen:api {"url": "/user/profile", "auth": false}"""
            user = self.users.get(params.login)
            if user is None:
                raise LookupError("user not exist")
            return user

        def create(self, ctx, params: CreateParams) -> dict:
            """apigen:api {"url": "/user/create", "auth": true, "method": "POST"}

            Registers a new user; logins are unique.
            """
            if params.login in self.users:
                raise ValueError("user " + params.login + " exist")
            user = User(len(self.users) + 1, params.login, params.name, params.status, params.age)
            self.users[params.login] = user
            return {"id": user.id}


    class OtherApi:
        def create(self, ctx, params: OtherCreateParams) -> dict:
            """apigen:api {"url": "/user/create", "auth": true, "method": "POST"}"""
            return {"id": 12, "login": params.username, "level": params.level}


    class StatsApi:
        def totals(self, ctx, params: StatsParams) -> dict:
            """apigen:api {"url": "/stats", "method": "GET"}"""
            return {"period": params.period, "total": 3}

        def raw(self, ctx, params: StatsParams) -> object:
            """apigen:api {"url": "/stats/raw", "method": "GET"}"""
            return object()
    '''
)


@pytest.fixture(scope="session")
def sample_source() -> str:
    return SAMPLE_API
