"""form_reconciler_server - FastAPI REST API for the form reconciliation SDK.

Exposes the ReconciliationEngine over HTTP: bundled form definitions,
reconciliation against a bundled or inline schema, and a FHIR
Questionnaire/QuestionnaireResponse endpoint.
"""
