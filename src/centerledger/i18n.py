"""Internationalisation helpers for centerledger."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

_ARABIC: Dict[str, str] = {
    "toast.session_expired": "الجلسة منتهية الصلاحية - يرجى تسجيل الدخول مرة أخرى",
    "toast.unauthorized": "غير مخول للوصول إلى هذه الصفحة",
    "toast.not_found": "السجل غير موجود",
    "toast.fetch_failed": "فشل في جلب البيانات",
    "toast.save_failed": "فشل في حفظ البيانات",
    "toast.delete_failed": "فشل في حذف السجل",
    "toast.created": "تم إضافة الحساب بنجاح",
    "toast.updated": "تم تحديث البيانات بنجاح",
    "toast.deleted": "تم حذف السجل بنجاح",
    "toast.required_fields": "جميع الحقول مطلوبة",
    "toast.date_required": "يرجى اختيار التاريخ",
    "toast.no_permission": "ليس لديك صلاحية لتنفيذ هذا الإجراء",
    "attendance.created": "تم إضافة السجل بنجاح",
    "attendance.updated": "تم تحديث السجل بنجاح",
    "attendance.deleted": "تم حذف السجل بنجاح",
    "attendance.required": "يرجى ملء جميع الحقول المطلوبة",
    "attendance.save_failed": "فشل في حفظ السجل",
    "attendance.delete_failed": "فشل في حذف السجل",
    "attendance.load_failed": "فشل في تحميل البيانات",
    "attendance.sample_loaded": "تم تحميل بيانات تجريبية للبدء",
    "attendance.marked": "تم التسجيل بنجاح",
    "attendance.mark_updated": "تم التحديث بنجاح",
    "attendance.mark_failed": "فشل في التسجيل",
    "attendance.invalid_status": "حالة الحضور غير صحيحة",
    "signin.success": "تم تسجيل الدخول بنجاح",
    "signin.invalid": "اسم المستخدم أو كلمة المرور غير صحيحة",
    "signin.service_unavailable": "الخدمة غير متوفرة - تأكد من صحة الرابط",
    "signin.no_token": "لم يتم استلام رمز التوثيق من الخادم",
    "signin.connection_failed": "فشل في الاتصال بالخادم",
    "server.token_required": "رمز الدخول مطلوب",
    "server.token_invalid": "رمز الدخول غير صالح",
    "server.created": "تم الانشاء بنجاح",
    "server.updated": "تم التحديث بنجاح",
    "server.deleted": "تم الحذف بنجاح",
    "server.not_found": "الحساب غير موجود",
    "server.fetch_failed": "خطأ في جلب البيانات",
    "server.create_failed": "خطأ في إنشاء الحساب",
    "server.update_failed": "خطأ في تحديث الحساب",
    "server.delete_failed": "خطأ في حذف الحساب",
}

_ENGLISH: Dict[str, str] = {
    "toast.session_expired": "Session expired - please sign in again",
    "toast.unauthorized": "You are not authorised to access this page",
    "toast.not_found": "Record not found",
    "toast.fetch_failed": "Failed to fetch data",
    "toast.save_failed": "Failed to save data",
    "toast.delete_failed": "Failed to delete record",
    "toast.created": "Account added successfully",
    "toast.updated": "Data updated successfully",
    "toast.deleted": "Record deleted successfully",
    "toast.required_fields": "All fields are required",
    "toast.date_required": "Please pick a date",
    "toast.no_permission": "You do not have permission for this action",
    "attendance.created": "Record added successfully",
    "attendance.updated": "Record updated successfully",
    "attendance.deleted": "Record deleted successfully",
    "attendance.required": "Please fill in all required fields",
    "attendance.save_failed": "Failed to save record",
    "attendance.delete_failed": "Failed to delete record",
    "attendance.load_failed": "Failed to load data",
    "attendance.sample_loaded": "Sample data loaded to get started",
    "attendance.marked": "Attendance recorded successfully",
    "attendance.mark_updated": "Attendance updated successfully",
    "attendance.mark_failed": "Failed to record attendance",
    "attendance.invalid_status": "Unknown attendance status",
    "signin.success": "Signed in successfully",
    "signin.invalid": "Incorrect user name or password",
    "signin.service_unavailable": "Service unavailable - check the URL",
    "signin.no_token": "No access token received from the server",
    "signin.connection_failed": "Could not connect to the server",
    "server.token_required": "Access token required",
    "server.token_invalid": "Invalid token",
    "server.created": "Created successfully",
    "server.updated": "Updated successfully",
    "server.deleted": "Deleted successfully",
    "server.not_found": "Account not found",
    "server.fetch_failed": "Error fetching data",
    "server.create_failed": "Error creating account",
    "server.update_failed": "Error updating account",
    "server.delete_failed": "Error deleting account",
}


class Translator:
    """Store translations for toast and server messages."""

    def __init__(self, default_locale: str = "ar", *, translations: Optional[Mapping[str, Mapping[str, str]]] = None) -> None:
        self.default_locale = default_locale
        self._translations: Dict[str, Dict[str, str]] = {
            "ar": dict(_ARABIC),
            "en": dict(_ENGLISH),
        }
        if translations:
            for locale, mapping in translations.items():
                self._translations.setdefault(locale, {}).update(mapping)

    def set_translation(self, locale: str, key: str, value: str) -> None:
        self._translations.setdefault(locale, {})[key] = value

    def translate(self, key: str, *, locale: Optional[str] = None) -> str:
        target_locale = locale or self.default_locale
        language = self._translations.get(target_locale) or self._translations[self.default_locale]
        return language.get(key, key)

    def available_locales(self) -> tuple[str, ...]:
        return tuple(sorted(self._translations))


__all__ = ["Translator"]
