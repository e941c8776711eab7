"""Static n8n workflow templates."""
import json
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

SCRAPE_SEARCH_URL = "https://www.google.com/maps/search/{query}"
DEFAULT_SCHEDULE_HOURS = 24


def _node(name: str, node_type: str, type_version: float, position: List[int],
          parameters: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "parameters": parameters,
        "name": name,
        "type": node_type,
        "typeVersion": type_version,
        "position": position,
    }


def _link(target: str) -> Dict[str, List[List[Dict[str, Any]]]]:
    return {"main": [[{"node": target, "type": "main", "index": 0}]]}


def build_scraping_workflow(
    location: str,
    destination: str,
    name: Optional[str] = None,
    query: str = "businesses",
    schedule_hours: int = DEFAULT_SCHEDULE_HOURS,
) -> Dict[str, Any]:
    """Build a scheduled scraping workflow definition.

    Every ``schedule_hours`` the workflow fetches the search results page for
    ``query`` around ``location``, extracts the listing names and addresses,
    and appends them to the Google Sheets document ``destination``.

    Returns a body accepted by ``POST /api/v1/workflows``.
    """
    location = location.strip()
    destination = destination.strip()
    if not location:
        raise ValueError("location must not be empty")
    if not destination:
        raise ValueError("destination must not be empty")

    search_url = SCRAPE_SEARCH_URL.format(query=quote_plus(f"{query} {location}"))

    nodes = [
        _node(
            "Schedule Trigger", "n8n-nodes-base.scheduleTrigger", 1.2, [0, 0],
            {"rule": {"interval": [{"field": "hours", "hoursInterval": schedule_hours}]}},
        ),
        _node(
            "Fetch Listings", "n8n-nodes-base.httpRequest", 4.2, [220, 0],
            {
                "url": search_url,
                "options": {
                    "response": {"response": {"responseFormat": "text"}},
                    "timeout": 30000,
                },
            },
        ),
        _node(
            "Extract Listings", "n8n-nodes-base.html", 1.2, [440, 0],
            {
                "operation": "extractHtmlContent",
                "dataPropertyName": "data",
                "extractionValues": {
                    "values": [
                        {"key": "name", "cssSelector": "div.qBF1Pd", "returnArray": True},
                        {"key": "address", "cssSelector": "div.W4Efsd span", "returnArray": True},
                    ]
                },
            },
        ),
        _node(
            "Format Rows", "n8n-nodes-base.code", 2, [660, 0],
            {
                "jsCode": (
                    "const out = [];\n"
                    "for (const item of $input.all()) {\n"
                    "  const names = item.json.name || [];\n"
                    "  const addresses = item.json.address || [];\n"
                    "  names.forEach((n, i) => out.push({ json: {\n"
                    f"    location: {json.dumps(location)},\n"
                    "    name: n,\n"
                    "    address: addresses[i] || '',\n"
                    "    scrapedAt: new Date().toISOString(),\n"
                    "  }}));\n"
                    "}\n"
                    "return out;"
                ),
            },
        ),
        _node(
            "Append to Sheet", "n8n-nodes-base.googleSheets", 4.5, [880, 0],
            {
                "operation": "append",
                "documentId": {"__rl": True, "mode": "id", "value": destination},
                "sheetName": {"__rl": True, "mode": "name", "value": "Sheet1"},
                "columns": {"mappingMode": "autoMapInputData", "value": {}},
                "options": {},
            },
        ),
    ]

    connections = {
        "Schedule Trigger": _link("Fetch Listings"),
        "Fetch Listings": _link("Extract Listings"),
        "Extract Listings": _link("Format Rows"),
        "Format Rows": _link("Append to Sheet"),
    }

    return {
        "name": name or f"Scraper - {location}",
        "nodes": nodes,
        "connections": connections,
        "settings": {"executionOrder": "v1"},
    }
