"""QuillPress: theme registry and front controller for a small CMS."""
