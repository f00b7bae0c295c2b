import yaml
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional
from .datatypes import CarrierPlan

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / 'data'
CFG_PATH = DATA_DIR / 'analyzer_config.yaml'
CATALOG_PATH = DATA_DIR / 'alternative_carriers.yaml'

_config_cache: Optional[Dict[str, Any]] = None
_catalog_cache: Optional[List[CarrierPlan]] = None

def load_config() -> Dict[str, Any]:
    """Load the analyzer settings, cached for the life of the process."""
    global _config_cache
    if _config_cache is None:
        _config_cache = yaml.safe_load(CFG_PATH.read_text())
        logger.debug(f"Loaded analyzer config (version {_config_cache.get('metadata', {}).get('config_version', 'unknown')})")
    return _config_cache

def load_carrier_plans() -> List[CarrierPlan]:
    global _catalog_cache
    if _catalog_cache is None:
        cfg = yaml.safe_load(CATALOG_PATH.read_text())
        out = []
        for p in cfg['plans']:
            out.append(CarrierPlan(id=p['id'], name=p['name'], network=p['network'],
                                   price_per_line=decimal_setting(p.get('price_per_line', 0)),
                                   features=list(p.get('features', []))))
        _catalog_cache = out
        logger.debug(f"Loaded {len(out)} alternative carrier plans")
    return _catalog_cache

def decimal_setting(value) -> Decimal:
    # YAML hands back floats; go through str so 0.7 stays 0.7
    return Decimal(str(value))

def profile(name: str) -> Dict[str, Any]:
    profiles = load_config()['profiles']
    if name not in profiles:
        raise KeyError(f'Unknown normalization profile {name!r}')
    return profiles[name]
