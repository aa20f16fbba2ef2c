# apps/reports/views.py

import logging

from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from core import constants
from core.mixins.envelope import EnvelopeResponseMixin
from core.utils.excel_export import export_multiple_sheets
from core.utils.utils import days_window, resolve_window
from .services import ReportService

logger = logging.getLogger(__name__)


def positive_int_param(request, name, default):
    value = request.query_params.get(name)
    if value in (None, ''):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError({name: 'Must be a positive integer.'})
    if number <= 0:
        raise ValidationError({name: 'Must be a positive integer.'})
    return number


class StatisticsAPIView(EnvelopeResponseMixin, APIView):
    """Base for statistics endpoints taking startDate/endDate (default: current month)"""

    def get_window(self, request):
        return resolve_window(request.query_params)


class DashboardStatisticsAPIView(StatisticsAPIView):
    """Every statistics section for the window in one response"""

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.dashboard(start, end))


class OverviewAPIView(StatisticsAPIView):

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.overview(start, end))


class RevenueTrendAPIView(StatisticsAPIView):
    """Revenue series for startDate/endDate, or for the last `days` days (default 7)"""

    def get(self, request):
        params = request.query_params
        if any(params.get(name) for name in ('startDate', 'endDate', 'start_date', 'end_date')):
            start, end = self.get_window(request)
        else:
            start, end = days_window(positive_int_param(request, 'days', constants.DEFAULT_TREND_DAYS))
        return Response(ReportService.revenue_trend(start, end))


class IncomeCompositionAPIView(StatisticsAPIView):

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.income_composition(start, end))


class CardRevenueAPIView(StatisticsAPIView):

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.card_revenue(start, end))


class TherapistPerformanceAPIView(StatisticsAPIView):

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.therapist_performance(start, end))


class CustomerActivityAPIView(StatisticsAPIView):

    def get(self, request):
        start, end = self.get_window(request)
        return Response(ReportService.customer_activity(start, end))


class CustomerConstitutionAPIView(StatisticsAPIView):

    def get(self, request):
        return Response(ReportService.customer_constitution())


class InactiveCustomersAPIView(StatisticsAPIView):
    """Longest-inactive customers; `days` is the inactivity threshold"""

    def get(self, request):
        threshold = positive_int_param(request, 'days', constants.INACTIVE_DEFAULT_DAYS)
        return Response(ReportService.inactive_customers(threshold_days=threshold))


class TodayOverviewAPIView(StatisticsAPIView):

    def get(self, request):
        return Response(ReportService.today_overview())


class StatisticsExportAPIView(StatisticsAPIView):
    """Statistics for the window as an .xlsx workbook"""

    def get(self, request):
        start, end = self.get_window(request)
        sheets = ReportService.export_sheets(start, end)
        filename = f"statistics_{start:%Y%m%d}_{end:%Y%m%d}"
        logger.info(f"Exporting statistics workbook {filename}")
        return export_multiple_sheets(sheets, filename=filename)
