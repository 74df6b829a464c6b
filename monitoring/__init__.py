"""
Monitoring Module

Contains the course monitoring pipeline:
- Browser automation and session handling
- Content scraping and thumbnail lookup
- Change detection
- Cycle orchestration
"""
