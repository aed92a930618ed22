"""Helpdesk insights: dashboard metrics, trends and downloadable reports."""
