import json
import logging
import os
from dataclasses import dataclass
from dataclasses import fields
from typing import Optional

"""
Configuration of the codec.  Settings are taken, in this order, from

* parameters given to :meth:`CodecConfig.load`
* environment variables prepended with ``ICSCODEC_``, like
  ``ICSCODEC_DEFAULT_TIMEZONE``, ``ICSCODEC_PRODID`` and
  ``ICSCODEC_CALENDAR_NAME``
* a json or yaml configuration file, ``ICSCODEC_CONFIG_FILE`` or one of
  the default locations, section ``ICSCODEC_CONFIG_SECTION`` or "default"
"""


def config_section(config, section="default"):
    """
    Returns the settings of one section.  A section may inherit settings
    from another one through the "inherits" key.
    """
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn):
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config/"
        for config_file in (
            f"{cfgdir}/icscodec/codec.conf",
            f"{cfgdir}/icscodec/codec.yaml",
            f"{cfgdir}/icscodec/codec.json",
            "/etc/icscodec/codec.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        try:
            with open(fn, "rb") as config_file:
                return json.load(config_file)
        except json.decoder.JSONDecodeError:
            ## Late import, wrapped in try/except.  yaml is external module,
            ## and not included in the requirements as for now.
            try:
                import yaml

                try:
                    with open(fn, "rb") as config_file:
                        return yaml.load(config_file, yaml.SafeLoader)
                except yaml.YAMLError:
                    logging.error(
                        f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
                    )
            except ImportError:
                logging.error(
                    f"config file {fn} exists but is not valid json, and pyyaml is not installed."
                )

    except FileNotFoundError:
        logging.info("no config file found")
    except ValueError:
        logging.error("error in config file.  It will be ignored", exc_info=True)
    return {}


@dataclass
class CodecConfig:
    """
    Attributes:
        default_timezone: IANA name of the zone given to floating
            date-times when parsing.  None keeps them naive.
        prodid: PRODID written by the encoder.
        calendar_name: X-WR-CALNAME written by the encoder.
    """

    default_timezone: Optional[str] = None
    prodid: Optional[str] = None
    calendar_name: Optional[str] = None

    @classmethod
    def load(
        cls,
        config_file: Optional[str] = None,
        section: Optional[str] = None,
        environment: bool = True,
        **settings,
    ) -> "CodecConfig":
        known = [f.name for f in fields(cls)]
        for key in settings:
            if key not in known:
                raise TypeError(f"unknown setting {key}")
        ret = {}

        if environment:
            config_file = config_file or os.environ.get("ICSCODEC_CONFIG_FILE")
            section = section or os.environ.get("ICSCODEC_CONFIG_SECTION")

        cfg = read_config(config_file)
        if cfg:
            file_section = config_section(cfg, section or "default")
            ret.update({k: v for k, v in file_section.items() if k in known and v})

        if environment:
            for key in known:
                value = os.environ.get(f"ICSCODEC_{key.upper()}")
                if value:
                    ret[key] = value

        ret.update({k: v for k, v in settings.items() if v is not None})
        return cls(**ret)
