"""
Shared pagination parameters for list endpoints.
"""

from typing import Annotated

from fastapi import Query

PaginationSkip = Annotated[int, Query(ge=0, description="Number of records to skip")]
PaginationLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]

# Short ranked lists (similar issues, top issues)
PaginationLimitSmall = Annotated[
    int, Query(ge=1, le=20, description="Maximum number of results to return")
]
