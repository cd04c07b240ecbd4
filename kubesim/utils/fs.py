import json
import os
import yaml
from typing import Any, Dict, List, Optional, Union

from kubesim.models.config import ConfigFile
from kubesim.utils.logger import get_logger

logger = get_logger(__name__)


def read_config_from_file(file_path: Optional[str] = None, param: list[str] = None) -> ConfigFile:
    """Read config file from local
    Args:
        file_path: Path to config file. When empty only defaults and params are used.
        param: Additional parameters for config file in key=value format.
    Returns:
        ConfigFile: Config file object
    """
    config: Dict[str, Any] = {}
    if file_path:
        with open(file_path, "r", encoding="utf-8") as stream:
            config = yaml.safe_load(stream) or {}
    if param:
        # Keep track of parameters in config file
        config['parameters'] = {}
        for p in param:
            key, value = p.split('=', 1)
            config['parameters'][str(key)] = str(value)
            # Parameters override top level settings of the same name
            config[str(key)] = yaml.safe_load(value)
    return ConfigFile(**config)


def load_manifests(file_path: str) -> List[Dict[str, Any]]:
    """
    Read every non-empty YAML document of a manifest file.

    A document of kind `List` is expanded into its items.
    """
    with open(file_path, "r", encoding="utf-8") as stream:
        documents = [doc for doc in yaml.safe_load_all(stream) if doc]
    manifests = []
    for doc in documents:
        if isinstance(doc, dict) and doc.get("kind") == "List":
            manifests.extend(doc.get("items") or [])
        else:
            manifests.append(doc)
    logger.debug("Loaded %d manifests from %s", len(manifests), file_path)
    return manifests


def env_is_truthy(var: str):
    '''
    Checks whether a environment variable is set to truthy value.
    '''
    value = os.getenv(var, 'false')
    value = value.lower().strip()
    return value in ['yes', 'y', 'true', '1']


def save_data_to_file(data: Union[Dict, List], file_path: str):
    format = file_path.split('.')[-1]
    if format == 'yaml':
        with open(file_path, 'w') as f:
            yaml.dump(data, f)
    elif format == 'json':
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=4)
    else:
        raise ValueError(f"Unsupported format: {format}")
