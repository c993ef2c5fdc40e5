"""Tests for JSON extraction and field coercion."""

import pytest

from lead_signal_ai.services.normalizer import (
    clamp_score,
    coerce_company,
    coerce_lead,
    extract_json_array,
    leads_from_text,
    normalize_leads,
)


class TestExtractJsonArray:
    def test_fenced_array_inside_prose(self):
        text = 'Here are leads:\n```json\n[{"name":"A","company":"B"}]\n```\nThanks'
        assert extract_json_array(text) == [{"name": "A", "company": "B"}]

    def test_no_brackets_returns_empty(self):
        assert extract_json_array("no data found") == []

    def test_empty_and_none(self):
        assert extract_json_array("") == []
        assert extract_json_array(None) == []

    def test_outermost_span_with_nested_arrays(self):
        text = 'Result: [{"name":"A","company":"B","tags":["x","y"]}] (see [notes])'
        # outermost span runs to the last "]", which makes the JSON invalid
        assert extract_json_array(text) == []
        text = 'Result: [{"name":"A","company":"B","tags":["x","y"]}] done'
        assert extract_json_array(text) == [{"name": "A", "company": "B", "tags": ["x", "y"]}]

    def test_malformed_json_does_not_raise(self):
        assert extract_json_array('[{"name": "A", "company": }]') == []

    def test_idempotent_on_clean_json(self):
        text = '[{"name":"A","company":"B"}]'
        assert extract_json_array(text) == extract_json_array(text) == [{"name": "A", "company": "B"}]


class TestClampScore:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (-5, 0),
            (137.6, 100),
            ("abc", 0),
            (None, 0),
            (42.4, 42),
            (42.5, 43),
            ("88", 88),
            (True, 0),
            (float("nan"), 0),
            (float("inf"), 100),
            ([], 0),
        ],
    )
    def test_always_integer_in_range(self, raw, expected):
        result = clamp_score(raw)
        assert result == expected
        assert isinstance(result, int)


class TestCoerceLead:
    def test_rejects_empty_name(self):
        assert coerce_lead({"name": "", "company": "Acme"}) is None

    def test_rejects_missing_company(self):
        assert coerce_lead({"name": "Jane Doe"}) is None

    def test_rejects_non_dict(self):
        assert coerce_lead(["Jane", "Acme"]) is None
        assert coerce_lead("Jane at Acme") is None

    def test_defaults(self):
        lead = coerce_lead({"name": "Jane Doe", "company": "Acme"})
        assert lead is not None
        assert lead.title == ""
        assert lead.location == ""
        assert lead.contact_url_or_email == ""
        assert lead.relevance_score == 0

    def test_alias_keys(self):
        lead = coerce_lead(
            {
                "full_name": "  Jane   Doe ",
                "organization": "Acme",
                "position": "Head of Talent",
                "linkedin_url": "https://linkedin.com/in/janedoe",
                "rating": 77.7,
            },
            source="perplexity",
        )
        assert lead.name == "Jane Doe"
        assert lead.company == "Acme"
        assert lead.title == "Head of Talent"
        assert lead.contact_url_or_email == "https://linkedin.com/in/janedoe"
        assert lead.relevance_score == 78
        assert lead.source == "perplexity"

    def test_canonical_key_wins_over_alias(self):
        lead = coerce_lead({"name": "J", "company": "Acme", "organization": "Other", "relevance_score": 10, "score": 90})
        assert lead.company == "Acme"
        assert lead.relevance_score == 10

    def test_blank_canonical_falls_back_to_alias(self):
        lead = coerce_lead({"name": "J", "company": " ", "organization": "Acme"})
        assert lead.company == "Acme"

    def test_first_and_last_name(self):
        lead = coerce_lead({"first_name": "Jane", "last_name": "Doe", "company": "Acme", "email": "jane@acme.com"})
        assert lead.name == "Jane Doe"
        assert lead.contact_url_or_email == "jane@acme.com"

    def test_record_source_overrides_default(self):
        lead = coerce_lead({"name": "J", "company": "Acme", "source": "manual"}, source="perplexity")
        assert lead.source == "manual"


class TestCoerceCompany:
    def test_aliases(self):
        company = coerce_company({"company": "Acme", "website": "acme.com", "hq": "Austin", "careers_url": "https://acme.com/jobs"})
        assert company.company_name == "Acme"
        assert company.linkedin_or_domain == "acme.com"
        assert company.headquarters_location == "Austin"
        assert company.careers_page_url == "https://acme.com/jobs"
        assert company.domain == "acme.com"

    def test_linkedin_page_has_no_domain(self):
        company = coerce_company({"company_name": "Acme", "linkedin_url": "https://linkedin.com/company/acme"})
        assert company.domain is None

    def test_rejects_missing_name(self):
        assert coerce_company({"industry": "Fintech"}) is None


class TestNormalizeLeads:
    def test_drops_invalid_records(self):
        leads = normalize_leads([{"name": "A", "company": "B"}, {"name": "", "company": "C"}, 42])
        assert [(l.name, l.company) for l in leads] == [("A", "B")]

    def test_leads_from_llm_text(self):
        text = (
            "Sure! Here are the hiring managers:\n```json\n"
            '[{"name": "Jane Doe", "title": "VP Engineering", "company": "Acme", '
            '"location": "NYC", "profile_url": "https://linkedin.com/in/jd", "relevance_score": 137}]\n```'
        )
        leads = leads_from_text(text, source="perplexity")
        assert len(leads) == 1
        assert leads[0].relevance_score == 100
        assert leads[0].contact_url_or_email == "https://linkedin.com/in/jd"
        assert leads[0].source == "perplexity"
