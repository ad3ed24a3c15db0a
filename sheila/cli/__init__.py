"""Command line: test discovery and listing, report display, process control and cache clearing."""