"""Quote domain - saved and shareable price quotes"""
