from discquiz.models.visitor_counter import VISITOR_COUNTER_ROW_ID, VisitorCounter

__all__ = ["VISITOR_COUNTER_ROW_ID", "VisitorCounter"]
