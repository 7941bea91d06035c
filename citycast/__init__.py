"""City search and weather lookup core."""
