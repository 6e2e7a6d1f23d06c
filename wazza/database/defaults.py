from typing import Any, Dict, List, Mapping


def get_default_list(config: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Rows that must exist after startup. ``key``/``value`` identify an existing
    row, ``data`` is inserted when none matches.
    """
    return [
        {
            "object_name": "USER",
            "type": "NOT_NULL",
            "key": "email",
            "value": config["ADMIN_EMAIL"].lower(),
            "data": {
                "display_name": "Wazza Admin",
                "role": "admin",
                "status": "active",
                "password": config["ADMIN_PASSWORD"],
            },
        },
    ]
