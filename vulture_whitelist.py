# Vulture whitelist for media-reconcile project
# This file contains false positives that should be ignored by vulture

# Pydantic model_config is used by the framework
_.model_config

# Pydantic validators are used by the framework
_.parse_extensions
_.validate_log_level
_.cls

# Pydantic settings customization is used by the framework
_.settings_customise_sources
_.env_settings

# Data class fields are read by callers of the result types
_.exception
_.original_name
_.backdrop_path
_.vote_average
_.air_date
_.runtime
_.still_path
_.overview
_.status

# Public engine operations used by embedding applications
_.pending_tasks
_.discard_task
_.confirm_recognize
_.confirm_rename

# Test mock attributes that vulture may not detect
_.return_value
_.side_effect

# Pytest fixtures with autouse=True are automatically used
patch_time_sleep
