"""Shared fixtures: raw project documents shaped like GitHub GraphQL output."""

import pytest


def single_select(field_name, value):
    return {
        "__typename": "ProjectV2ItemFieldSingleSelectValue",
        "name": value,
        "optionId": f"opt_{value}",
        "field": {"name": field_name},
    }


def number_value(field_name, value):
    return {
        "__typename": "ProjectV2ItemFieldNumberValue",
        "number": value,
        "field": {"name": field_name},
    }


def iteration_value(field_name, title):
    return {
        "__typename": "ProjectV2ItemFieldIterationValue",
        "title": title,
        "startDate": "2024-05-06",
        "duration": 14,
        "field": {"name": field_name},
    }


def raw_item(item_id, repository=None, assignees=(), status=None, priority=None, extra_nodes=(), **attrs):
    """Build one raw item in the upstream fetch shape."""
    nodes = []
    if status is not None:
        nodes.append(single_select("Status", status))
    if priority is not None:
        nodes.append(single_select("Priority", priority))
    nodes.extend(extra_nodes)
    item = {
        "id": item_id,
        "title": attrs.pop("title", f"Item {item_id}"),
        "repository": repository,
        "assignees": list(assignees),
        "fieldValues": nodes,
    }
    item.update(attrs)
    return item


SCHEMA_NODES = [
    {"__typename": "ProjectV2Field", "name": "Title", "dataType": "TITLE"},
    {
        "__typename": "ProjectV2SingleSelectField",
        "name": "Status",
        "dataType": "SINGLE_SELECT",
        "options": [{"id": "o1", "name": "Backlog"}, {"id": "o2", "name": "Ready"}, {"id": "o3", "name": "Done"}],
    },
    {
        "__typename": "ProjectV2SingleSelectField",
        "name": "Priority",
        "dataType": "SINGLE_SELECT",
        "options": [{"id": "p1", "name": "P1"}, {"id": "p2", "name": "P2"}],
    },
    {"__typename": "ProjectV2Field", "name": "Size", "dataType": "NUMBER"},
    {"__typename": "ProjectV2IterationField", "name": "Sprint", "dataType": "ITERATION"},
    {"__typename": "ProjectV2Field", "name": "Notes", "dataType": "TEXT"},
]


@pytest.fixture
def make_item():
    return raw_item


@pytest.fixture
def project_document():
    """Four items across two repositories plus a draft, with the field schema."""
    return {
        "project": "Platform Roadmap",
        "description": "Quarterly platform work",
        "createdAt": "2024-01-02T09:00:00Z",
        "updatedAt": "2024-05-20T17:30:00Z",
        "fields": SCHEMA_NODES,
        "items": [
            raw_item(
                "PVTI_1", "acme/api", ["alice"], "Backlog", "P1",
                [number_value("Size", 3), iteration_value("Sprint", "Sprint 1")],
                createdAt="2024-02-01T00:00:00Z",
            ),
            raw_item(
                "PVTI_2", "acme/web", ["bob", "alice"], "Ready", "P2",
                [number_value("Size", 5)],
                createdAt="2024-01-15T00:00:00Z",
            ),
            raw_item("PVTI_3", "acme/api", ["bob"], "Ready", createdAt="2024-03-01T00:00:00Z"),
            raw_item("PVTI_4", None, [], "Done", "P1", title="Draft: spike"),
        ],
    }


@pytest.fixture
def graphql_document(project_document):
    """The same project as an organization projectV2 GraphQL response."""
    nodes = []
    for item in project_document["items"]:
        node = {
            "id": item["id"],
            "type": "DRAFT_ISSUE" if item["repository"] is None else "ISSUE",
            "content": {
                "__typename": "DraftIssue" if item["repository"] is None else "Issue",
                "title": item["title"],
                "assignees": {"nodes": [{"login": a} for a in item["assignees"]]},
            },
            "fieldValues": {"nodes": item["fieldValues"] + [{}]},
        }
        if item["repository"]:
            node["content"]["repository"] = {"nameWithOwner": item["repository"]}
        nodes.append(node)
    return {
        "data": {
            "organization": {
                "projectV2": {
                    "id": "PVT_1",
                    "title": project_document["project"],
                    "shortDescription": project_document["description"],
                    "fields": {"nodes": SCHEMA_NODES},
                    "items": {"totalCount": len(nodes), "nodes": nodes},
                }
            }
        }
    }
