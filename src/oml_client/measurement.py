from __future__ import annotations

from typing import Optional

from .channel import DEFAULT
from .models import FieldType
from .registry import Registry, default_registry


class MeasurementPoint:
    """Base class for measurement point types.

    Subclasses declare their name, fields and channels once at load time and
    inject samples at runtime. Injection is a no-op until the registry has
    been initialized.

    Example:
        class CPU(MeasurementPoint, name="cpu"):
            pass

        CPU.param("load", type="double")
        CPU.channel("default")

        oml_client.init(domain="lab", node_id="n1", app_name="monitor", collect="file:-")
        CPU.inject(0.42)
        oml_client.close()
    """

    registry: Optional[Registry] = None

    def __init_subclass__(
        cls, name: Optional[str] = None, registry: Optional[Registry] = None, **kwargs
    ):
        super().__init_subclass__(**kwargs)
        if registry is not None:
            cls.registry = registry
        if name is not None:
            cls.set_name(name)

    @classmethod
    def bound_registry(cls) -> Registry:
        return cls.registry if cls.registry is not None else default_registry()

    @classmethod
    def set_name(cls, name: str) -> None:
        cls.bound_registry().declare_name(cls, name)

    @classmethod
    def param(cls, name: str, type: FieldType | str | None = None) -> None:
        """Append a field; ``type`` is one of string, int32 or double (default string)."""
        cls.bound_registry().declare_field(cls, name, type)

    @classmethod
    def channel(cls, channel: str, domain: str = DEFAULT) -> None:
        """Send this measurement point on ``channel``. May be declared several times."""
        cls.bound_registry().declare_channel(cls, channel, domain)

    @classmethod
    def inject(cls, *values):
        return cls.bound_registry().inject(cls, *values)
