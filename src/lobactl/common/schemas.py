"""Data models for the load-balancer agent's ``/info`` response."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Destination(BaseModel):
    """A real server behind a virtual service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str = ""
    port: int = 0
    forward: str = ""
    weight: int = 0
    active_conn: int = Field(0, alias="activeConn")
    inactive_conn: int = Field(0, alias="inactiveConn")
    detached: bool = False
    locked: bool = False


class Service(BaseModel):
    """A virtual service; destinations keep the order reported by the agent."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    protocol: str = ""
    address: str = ""
    port: int = 0
    schedule: str = ""
    destinations: tuple[Destination, ...] = ()

    @field_validator("destinations", mode="before")
    @classmethod
    def _null_destinations(cls, value):
        return () if value is None else value


class InfoReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    services: tuple[Service, ...] = ()

    @field_validator("services", mode="before")
    @classmethod
    def _null_services(cls, value):
        return () if value is None else value
