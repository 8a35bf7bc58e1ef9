"""GraphQL query documents. Sent verbatim; the fetcher binds $pageSize and $cursor."""

ISSUES_QUERY = """
query ($owner: String!, $name: String!, $pageSize: Int!, $cursor: String, $states: [IssueState!], $labels: [String!]) {
    repository(owner: $owner, name: $name) {
        issues(first: $pageSize, after: $cursor, states: $states, labels: $labels) {
            nodes {
                number
                url
                title
                state
                createdAt
                closedAt
                labels(first: 100) {
                    nodes {
                        name
                    }
                }
            }
            pageInfo {
                endCursor
                hasNextPage
                hasPreviousPage
                startCursor
            }
        }
    }
}
"""

# Item types the timeline fragments above and below decode
TIMELINE_ITEM_TYPES = ("LABELED_EVENT", "UNLABELED_EVENT", "CLOSED_EVENT", "REOPENED_EVENT", "ISSUE_COMMENT")

ISSUES_WITH_TIMELINE_QUERY = """
query ($owner: String!, $name: String!, $pageSize: Int!, $cursor: String, $states: [IssueState!], $timelineItemTypes: [IssueTimelineItemsItemType!]) {
    repository(owner: $owner, name: $name) {
        issues(last: $pageSize, before: $cursor, states: $states) {
            nodes {
                number
                url
                title
                state
                createdAt
                closedAt
                timelineItems(itemTypes: $timelineItemTypes, first: 100) {
                    nodes {
                        __typename
                        ... on LabeledEvent {
                            createdAt
                            label {
                                name
                            }
                        }
                        ... on UnlabeledEvent {
                            createdAt
                            label {
                                name
                            }
                        }
                        ... on ClosedEvent {
                            createdAt
                        }
                        ... on ReopenedEvent {
                            createdAt
                        }
                        ... on IssueComment {
                            createdAt
                        }
                    }
                    pageInfo {
                        endCursor
                        hasNextPage
                        hasPreviousPage
                        startCursor
                    }
                }
            }
            pageInfo {
                endCursor
                hasNextPage
                hasPreviousPage
                startCursor
            }
        }
    }
}
"""

TIMELINE_QUERY = """
query ($owner: String!, $name: String!, $number: Int!, $cursor: String, $timelineItemTypes: [IssueTimelineItemsItemType!]) {
    repository(owner: $owner, name: $name) {
        issue(number: $number) {
            number
            title
            createdAt
            timelineItems(itemTypes: $timelineItemTypes, first: 100, after: $cursor) {
                nodes {
                    __typename
                    ... on LabeledEvent {
                        createdAt
                        label {
                            name
                        }
                    }
                    ... on UnlabeledEvent {
                        createdAt
                        label {
                            name
                        }
                    }
                    ... on ClosedEvent {
                        createdAt
                    }
                    ... on ReopenedEvent {
                        createdAt
                    }
                    ... on IssueComment {
                        createdAt
                    }
                }
                pageInfo {
                    endCursor
                    hasNextPage
                    hasPreviousPage
                    startCursor
                }
            }
        }
    }
}
"""
