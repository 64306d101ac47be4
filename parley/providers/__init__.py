"""External collaborators: model invocation and speech."""
