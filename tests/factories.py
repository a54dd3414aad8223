"""Row builders for in-memory content tables used across the suite."""

DEFAULT_RESULT_KEYS = (
    "D", "I", "S", "C",
    "High D", "High I", "High S", "High C",
    "DI", "ID", "IS", "SI", "SC", "CS", "DC", "CD",
)


def question_row(qid, age_min=10, age_max=99, types="DISC", category="general"):
    return {
        "id": qid,
        "text": f"문항 {qid}",
        "category": category,
        "target_age_min": age_min,
        "target_age_max": age_max,
        "options": [{"text": f"{qid}-{t}", "type": t} for t in types],
    }


def result_row(key, title=None):
    return {
        "type": key,
        "titles": [title or f"{key} 제목", f"{key} 보조 제목"],
        "summaries": [f"{key} 요약"],
        "base_name": f"{key} 기본형",
        "color": "#123456",
        "advice_list": [f"{key} 조언 {n}" for n in range(5)],
        "lucky_items": [f"{key} 아이템"],
        "famous_people_pool": [f"{key} 인물 {n}" for n in range(12)],
    }
