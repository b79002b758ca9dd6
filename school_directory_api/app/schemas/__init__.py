"""
Pydantic schema definitions for API payloads.

Each domain (schools, courses, reviews, users) defines its own models
for request and response bodies.  Schemas are separated from the
store's plain records to decouple API representation from persistence.
List endpoints return the query compiler's envelope directly because
``select`` makes their record shape dynamic.
"""
