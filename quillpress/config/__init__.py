"""Site configuration and option storage."""
