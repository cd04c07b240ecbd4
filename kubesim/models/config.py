from typing import Dict, Optional
from pydantic import BaseModel, field_validator
import kubesim.constants as const


class ConfigFile(BaseModel):
    seed: Optional[int] = None  # Seed for generated names and IPs. Unset means a fresh random session.
    parameters: Dict[str, str] = {}

    default_namespace: str = const.DEFAULT_NAMESPACE  # Namespace used when -n is not given
    kubernetes_version: str = const.KUBERNETES_VERSION  # Reported by nodes, version and describe
    nodes_ready: bool = True  # When False nodes start NotReady until a CNI bootstrap script runs

    home_dir: str = const.HOME_DIR  # Printed by pwd
    prompt: str = "$ "  # Prompt used by the interactive shell

    @field_validator('kubernetes_version', mode='after')
    @classmethod
    def has_version_prefix(cls, value: str) -> str:
        if not value.startswith('v'):
            return f'v{value}'
        return value

    @field_validator('default_namespace', mode='after')
    @classmethod
    def is_not_empty(cls, value: str) -> str:
        if value.strip() == '':
            raise ValueError('default_namespace must not be empty')
        return value
