"""Path-prefix reverse proxy in front of the news and user services"""
