"""Core constants: cache key prefixes and event bus channel names.

Single source of truth for cache key structure and the domain event
channels the trigger dispatcher subscribes to (DRY).
"""

# Cache key prefixes (used with :org:<organization_id> etc.)
CACHE_PREFIX_WORKFLOWS = "workflows"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Domain event channels consumed by the trigger dispatcher
CHANNEL_ENTITY_CREATED = "entity.created"
CHANNEL_ENTITY_STAGE_CHANGED = "entity.stage_changed"
CHANNEL_ENTITY_UPDATED = "entity.updated"

# Events published by the automation engine itself
CHANNEL_WORKFLOW_CREATED = "workflow.created"
